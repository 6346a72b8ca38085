"""Schemas Pydantic para ad sets."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field

from projects.ads_manager.schemas.base import BidStrategy, CamelCaseModel, EntityStatus


class CreateAdSetRequest(CamelCaseModel):
    """Criação de ad set. ``campaign_id`` é o ID local da campanha."""
    campaign_id: Optional[str] = None
    name: Optional[str] = None
    optimization_goal: Optional[str] = None
    billing_event: Optional[str] = None
    bid_strategy: Optional[BidStrategy] = None
    bid_amount: Optional[Decimal] = None
    daily_budget: Optional[Decimal] = None
    lifetime_budget: Optional[Decimal] = None
    status: EntityStatus = EntityStatus.PAUSED
    targeting: Optional[dict[str, Any]] = None
    promoted_object: Optional[dict[str, Any]] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class UpdateAdSetRequest(CamelCaseModel):
    """Patch parcial de ad set."""
    name: Optional[str] = None
    status: Optional[EntityStatus] = None
    optimization_goal: Optional[str] = None
    billing_event: Optional[str] = None
    bid_strategy: Optional[BidStrategy] = None
    bid_amount: Optional[Decimal] = None
    daily_budget: Optional[Decimal] = None
    lifetime_budget: Optional[Decimal] = None
    targeting: Optional[dict[str, Any]] = None
    promoted_object: Optional[dict[str, Any]] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class AdSetResponse(CamelCaseModel):
    """Resposta de ad set."""
    id: str
    owner_id: str
    campaign_id: str
    name: str
    optimization_goal: str
    billing_event: str
    bid_strategy: str
    bid_amount: Optional[Decimal] = None
    daily_budget: Optional[Decimal] = None
    lifetime_budget: Optional[Decimal] = None
    status: str
    targeting: Optional[dict[str, Any]] = None
    promoted_object: Optional[dict[str, Any]] = None
    remote_ad_account_id: str
    remote_campaign_id: Optional[str] = None
    remote_adset_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdSetSyncResult(CamelCaseModel):
    """Resultado da sincronização de ad sets de uma campanha."""
    synced: int = 0
    created: int = 0
    updated: int = 0
    errors: list[str] = Field(default_factory=list)
