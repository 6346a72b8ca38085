"""Schemas Pydantic para anúncios."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field

from projects.ads_manager.schemas.base import CamelCaseModel, EntityStatus


class AdLabel(CamelCaseModel):
    id: str
    name: Optional[str] = None


class CreateAdRequest(CamelCaseModel):
    """
    Criação de anúncio.

    ``adset_id`` e ``creative_id`` são IDs da Graph API (numéricos).
    """
    name: Optional[str] = None
    adset_id: Optional[str] = None
    creative_id: Optional[str] = None
    status: EntityStatus = EntityStatus.PAUSED
    tracking_specs: Optional[list[dict[str, Any]]] = None
    conversion_domain: Optional[str] = None
    ad_labels: Optional[list[AdLabel]] = None
    ad_schedule_start_time: Optional[datetime] = None
    ad_schedule_end_time: Optional[datetime] = None


class UpdateAdRequest(CamelCaseModel):
    """Patch parcial de anúncio."""
    name: Optional[str] = None
    status: Optional[EntityStatus] = None
    tracking_specs: Optional[list[dict[str, Any]]] = None
    conversion_domain: Optional[str] = None
    ad_labels: Optional[list[AdLabel]] = None
    ad_schedule_start_time: Optional[datetime] = None
    ad_schedule_end_time: Optional[datetime] = None


class AdFilters(CamelCaseModel):
    """Filtros de igualdade exata para listagem local."""
    status: Optional[EntityStatus] = None
    campaign_id: Optional[str] = None
    adset_id: Optional[str] = None
    creative_id: Optional[str] = None


class AdResponse(CamelCaseModel):
    """Resposta de anúncio."""
    id: str
    owner_id: str
    remote_ad_id: str
    name: str
    adset_id: str
    campaign_id: Optional[str] = None
    creative_id: str
    status: str
    effective_status: Optional[str] = None
    configured_status: Optional[str] = None
    bid_amount: Optional[Decimal] = None
    tracking_specs: Optional[list[dict[str, Any]]] = None
    conversion_domain: Optional[str] = None
    ad_labels: list[dict[str, Any]] = Field(default_factory=list)
    issues: list[dict[str, Any]] = Field(default_factory=list)
    recommendations: list[dict[str, Any]] = Field(default_factory=list)
    review_feedback: Optional[dict[str, Any]] = None
    ad_schedule_start_time: Optional[datetime] = None
    ad_schedule_end_time: Optional[datetime] = None
    preview_shareable_link: Optional[str] = None
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    ctr: float = 0.0
    cpc: float = 0.0
    conversions: int = 0
    created_time: Optional[datetime] = None
    updated_time: Optional[datetime] = None
