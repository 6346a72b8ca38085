"""Espelho local de campanhas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Float, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from shared.db.session import Base


class Campaign(Base):
    """Campanha do Ads Manager. Nunca é removida fisicamente (status DELETED)."""
    __tablename__ = "ads_manager_campaigns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    objective: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Orçamento (unidades da moeda, não centavos)
    daily_budget: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))
    lifetime_budget: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))
    bid_strategy: Mapped[str] = mapped_column(String(50), nullable=False)
    bid_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))

    start_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    targeting_spec: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    special_ad_categories: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Graph API
    remote_account_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    remote_campaign_id: Mapped[Optional[str]] = mapped_column(String(50), unique=True)

    # Métricas em cache
    impressions: Mapped[int] = mapped_column(Integer, default=0)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    spend: Mapped[float] = mapped_column(Float, default=0.0)
    conversions: Mapped[int] = mapped_column(Integer, default=0)
    ctr: Mapped[float] = mapped_column(Float, default=0.0)
    cpc: Mapped[float] = mapped_column(Float, default=0.0)
    cpm: Mapped[float] = mapped_column(Float, default=0.0)
    roas: Mapped[float] = mapped_column(Float, default=0.0)
    frequency: Mapped[float] = mapped_column(Float, default=0.0)
    reach: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
