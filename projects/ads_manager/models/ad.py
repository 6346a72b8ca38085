"""Espelho local de anúncios, indexado pelo ID remoto."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Float, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shared.db.session import Base


class Ad(Base):
    """Anúncio. Criado primeiro na Graph API, depois persistido."""
    __tablename__ = "ads_manager_ads"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    remote_ad_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    adset_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    campaign_id: Mapped[Optional[str]] = mapped_column(String(50), index=True)
    creative_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    effective_status: Mapped[Optional[str]] = mapped_column(String(50))
    configured_status: Mapped[Optional[str]] = mapped_column(String(20))
    bid_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))

    tracking_specs: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSON)
    conversion_domain: Mapped[Optional[str]] = mapped_column(String(255))
    ad_labels: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    issues: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    recommendations: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    review_feedback: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    ad_schedule_start_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    ad_schedule_end_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    preview_shareable_link: Mapped[Optional[str]] = mapped_column(Text)

    # Métricas em cache
    impressions: Mapped[int] = mapped_column(Integer, default=0)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    spend: Mapped[float] = mapped_column(Float, default=0.0)
    ctr: Mapped[float] = mapped_column(Float, default=0.0)
    cpc: Mapped[float] = mapped_column(Float, default=0.0)
    conversions: Mapped[int] = mapped_column(Integer, default=0)

    created_time: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_time: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
