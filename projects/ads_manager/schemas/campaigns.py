"""Schemas Pydantic para campanhas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import Field

from projects.ads_manager.schemas.base import (
    BidStrategy,
    CamelCaseModel,
    CampaignObjective,
    EntityStatus,
)


class CreateCampaignRequest(CamelCaseModel):
    """Criação de campanha. O status padrão é PAUSED (sem chamada remota)."""
    name: Optional[str] = None
    objective: Optional[CampaignObjective] = None
    status: EntityStatus = EntityStatus.PAUSED
    daily_budget: Optional[Decimal] = None
    lifetime_budget: Optional[Decimal] = None
    bid_strategy: Optional[BidStrategy] = None
    bid_amount: Optional[Decimal] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    targeting_spec: Optional[dict[str, Any]] = None
    special_ad_categories: list[str] = Field(default_factory=list)
    remote_account_id: Optional[str] = None


class UpdateCampaignRequest(CamelCaseModel):
    """Patch parcial de campanha; apenas campos enviados são aplicados."""
    name: Optional[str] = None
    status: Optional[EntityStatus] = None
    daily_budget: Optional[Decimal] = None
    lifetime_budget: Optional[Decimal] = None
    bid_strategy: Optional[BidStrategy] = None
    bid_amount: Optional[Decimal] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    targeting_spec: Optional[dict[str, Any]] = None


class CampaignFilters(CamelCaseModel):
    """Filtros de igualdade exata para listagem local."""
    status: Optional[EntityStatus] = None
    objective: Optional[CampaignObjective] = None
    remote_account_id: Optional[str] = None


BulkCampaignAction = Literal["pause", "activate", "archive", "delete"]


class BulkCampaignOperation(CamelCaseModel):
    """Operação em lote sobre campanhas."""
    campaign_ids: list[str]
    operation: BulkCampaignAction


class CampaignInsights(CamelCaseModel):
    """Métricas de performance de uma campanha."""
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    conversions: int = 0
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    roas: float = 0.0
    frequency: float = 0.0
    reach: int = 0


class CampaignResponse(CamelCaseModel):
    """Resposta de campanha."""
    id: str
    owner_id: str
    name: str
    objective: str
    status: str
    daily_budget: Optional[Decimal] = None
    lifetime_budget: Optional[Decimal] = None
    bid_strategy: str
    bid_amount: Optional[Decimal] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    targeting_spec: Optional[dict[str, Any]] = None
    special_ad_categories: list[str] = Field(default_factory=list)
    remote_account_id: str
    remote_campaign_id: Optional[str] = None
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    conversions: int = 0
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    roas: float = 0.0
    frequency: float = 0.0
    reach: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CampaignSyncResult(CamelCaseModel):
    """Resultado da sincronização remoto → local."""
    synced: int = 0
    created: int = 0
    updated: int = 0
    errors: list[str] = Field(default_factory=list)
