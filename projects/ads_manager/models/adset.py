"""Espelho local de ad sets."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from shared.db.session import Base


class AdSet(Base):
    """Ad set. Exclusão remove a linha local."""
    __tablename__ = "ads_manager_adsets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    campaign_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    optimization_goal: Mapped[str] = mapped_column(String(50), nullable=False)
    billing_event: Mapped[str] = mapped_column(String(50), nullable=False)
    bid_strategy: Mapped[str] = mapped_column(String(50), nullable=False)
    bid_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))
    daily_budget: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))
    lifetime_budget: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    targeting: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    promoted_object: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)

    remote_ad_account_id: Mapped[str] = mapped_column(String(50), nullable=False)
    remote_campaign_id: Mapped[Optional[str]] = mapped_column(String(50))
    remote_adset_id: Mapped[Optional[str]] = mapped_column(String(50), unique=True)

    start_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
