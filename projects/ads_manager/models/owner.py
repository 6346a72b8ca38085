"""Perfil do dono das entidades: conta de anúncios vinculada."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from shared.db.session import Base


class OwnerProfile(Base):
    __tablename__ = "ads_manager_owner_profiles"

    owner_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    ad_account_id: Mapped[Optional[str]] = mapped_column(String(50))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
