"""
Montagem dos payloads enviados à Graph API.

Cada entidade declara uma tupla fechada de ``WireField`` cobrindo todos os
campos do seu modelo de request. A cobertura é verificada na importação do
módulo: um campo novo no schema sem mapeamento aqui quebra o import.

A presença de um campo vem de ``model_fields_set`` do pydantic; campos com
``always=True`` são enviados mesmo quando o chamador usou o valor padrão.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from pydantic import BaseModel

from shared.core.exceptions import ValidationException
from shared.core.logging import get_logger
from projects.ads_manager.schemas.adsets import CreateAdSetRequest, UpdateAdSetRequest
from projects.ads_manager.schemas.ads import CreateAdRequest, UpdateAdRequest
from projects.ads_manager.schemas.base import BidStrategy
from projects.ads_manager.schemas.campaigns import CreateCampaignRequest, UpdateCampaignRequest
from projects.ads_manager.schemas.creatives import (
    CreateCreativeRequest,
    CreativePreviewRequest,
    UpdateCreativeRequest,
)
from projects.ads_manager.schemas.insights import InsightsRequest
from projects.ads_manager.utils.date_helpers import format_facebook_datetime
from projects.ads_manager.utils.money import to_minor_units
from projects.ads_manager.utils.validators import (
    DEFAULT_BID_STRATEGY,
    OPTIONAL_BID_STRATEGIES,
    UNCAPPED_STRATEGIES,
)

logger = get_logger(__name__)


class Encoding(str, Enum):
    RAW = "raw"
    MINOR_UNITS = "minor_units"
    JSON = "json"
    DATETIME = "datetime"
    CSV = "csv"


@dataclass(frozen=True)
class WireField:
    """Mapeamento de um atributo do request para um parâmetro da Graph API."""
    attr: str
    wire_name: Optional[str] = None
    encoding: Encoding = Encoding.RAW
    always: bool = False
    transform: Optional[Callable[[Any], Any]] = None

    @property
    def name(self) -> str:
        return self.wire_name or self.attr


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return format_facebook_datetime(value)
    raise TypeError(f"Tipo não serializável: {type(value).__name__}")


def encode_value(value: Any, encoding: Encoding) -> Any:
    if encoding is Encoding.MINOR_UNITS:
        return to_minor_units(value)
    if encoding is Encoding.JSON:
        return json.dumps(value, default=_json_default)
    if encoding is Encoding.DATETIME:
        if isinstance(value, datetime):
            return format_facebook_datetime(value)
        return str(value)
    if encoding is Encoding.CSV:
        return ",".join(str(item) for item in value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    return value


class PayloadSpec:
    """Conjunto fechado de WireFields de um modelo de request."""

    def __init__(
        self,
        model: type[BaseModel],
        fields: Sequence[WireField],
        skipped: Iterable[str] = (),
    ):
        declared = [f.attr for f in fields] + list(skipped)
        duplicated = {attr for attr in declared if declared.count(attr) > 1}
        missing = set(model.model_fields) - set(declared)
        unknown = set(declared) - set(model.model_fields)
        if missing or unknown or duplicated:
            raise TypeError(
                f"PayloadSpec de {model.__name__} inconsistente: "
                f"sem mapeamento={sorted(missing)} desconhecidos={sorted(unknown)} "
                f"duplicados={sorted(duplicated)}"
            )
        self.model = model
        self.fields = tuple(fields)
        self.skipped = frozenset(skipped)

    def build(self, obj: BaseModel) -> dict[str, Any]:
        if not isinstance(obj, self.model):
            raise TypeError(f"Esperado {self.model.__name__}, recebido {type(obj).__name__}")
        present = obj.model_fields_set
        payload: dict[str, Any] = {}
        for field in self.fields:
            if not (field.always or field.attr in present):
                continue
            value = getattr(obj, field.attr)
            if value is None:
                continue
            if field.transform is not None:
                value = field.transform(value)
            payload[field.name] = encode_value(value, field.encoding)
        return payload


# =============================================================================
# Especificações por entidade
# =============================================================================

CAMPAIGN_CREATE_SPEC = PayloadSpec(
    CreateCampaignRequest,
    (
        WireField("name"),
        WireField("objective"),
        WireField("status", always=True),
        WireField("daily_budget", encoding=Encoding.MINOR_UNITS),
        WireField("lifetime_budget", encoding=Encoding.MINOR_UNITS),
        WireField("bid_strategy"),
        WireField("bid_amount", encoding=Encoding.MINOR_UNITS),
        WireField("start_time", encoding=Encoding.DATETIME),
        WireField("end_time", "stop_time", Encoding.DATETIME),
        WireField("targeting_spec", "targeting", Encoding.JSON),
        WireField("special_ad_categories", encoding=Encoding.JSON, always=True),
    ),
    skipped=("remote_account_id",),
)

CAMPAIGN_UPDATE_SPEC = PayloadSpec(
    UpdateCampaignRequest,
    (
        WireField("name"),
        WireField("status"),
        WireField("daily_budget", encoding=Encoding.MINOR_UNITS),
        WireField("lifetime_budget", encoding=Encoding.MINOR_UNITS),
        WireField("bid_strategy"),
        WireField("bid_amount", encoding=Encoding.MINOR_UNITS),
        WireField("start_time", encoding=Encoding.DATETIME),
        WireField("end_time", "stop_time", Encoding.DATETIME),
        WireField("targeting_spec", "targeting", Encoding.JSON),
    ),
)

ADSET_CREATE_SPEC = PayloadSpec(
    CreateAdSetRequest,
    (
        WireField("name"),
        WireField("optimization_goal"),
        WireField("billing_event"),
        WireField("bid_strategy"),
        WireField("bid_amount", encoding=Encoding.MINOR_UNITS),
        WireField("daily_budget", encoding=Encoding.MINOR_UNITS),
        WireField("lifetime_budget", encoding=Encoding.MINOR_UNITS),
        WireField("status", always=True),
        WireField("targeting", encoding=Encoding.JSON),
        WireField("promoted_object", encoding=Encoding.JSON),
        WireField("start_time", encoding=Encoding.DATETIME),
        WireField("end_time", encoding=Encoding.DATETIME),
    ),
    # campaign_id local; o ID remoto é resolvido pelo serviço
    skipped=("campaign_id",),
)

ADSET_UPDATE_SPEC = PayloadSpec(
    UpdateAdSetRequest,
    (
        WireField("name"),
        WireField("status"),
        WireField("optimization_goal"),
        WireField("billing_event"),
        WireField("bid_strategy"),
        WireField("bid_amount", encoding=Encoding.MINOR_UNITS),
        WireField("daily_budget", encoding=Encoding.MINOR_UNITS),
        WireField("lifetime_budget", encoding=Encoding.MINOR_UNITS),
        WireField("targeting", encoding=Encoding.JSON),
        WireField("promoted_object", encoding=Encoding.JSON),
        WireField("start_time", encoding=Encoding.DATETIME),
        WireField("end_time", encoding=Encoding.DATETIME),
    ),
)

AD_CREATE_SPEC = PayloadSpec(
    CreateAdRequest,
    (
        WireField("name"),
        WireField("adset_id", transform=int),
        WireField(
            "creative_id",
            "creative",
            Encoding.JSON,
            transform=lambda creative_id: {"creative_id": int(creative_id)},
        ),
        WireField("status", always=True),
        WireField("tracking_specs", encoding=Encoding.JSON),
        WireField("conversion_domain"),
        WireField("ad_labels", "adlabels", Encoding.JSON),
        WireField("ad_schedule_start_time", encoding=Encoding.DATETIME),
        WireField("ad_schedule_end_time", encoding=Encoding.DATETIME),
    ),
)

AD_UPDATE_SPEC = PayloadSpec(
    UpdateAdRequest,
    (
        WireField("name"),
        WireField("status"),
        WireField("tracking_specs", encoding=Encoding.JSON),
        WireField("conversion_domain"),
        WireField("ad_labels", "adlabels", Encoding.JSON),
        WireField("ad_schedule_start_time", encoding=Encoding.DATETIME),
        WireField("ad_schedule_end_time", encoding=Encoding.DATETIME),
    ),
)

CREATIVE_CREATE_SPEC = PayloadSpec(
    CreateCreativeRequest,
    (
        WireField("name"),
        WireField("object_story_id"),
        WireField("object_story_spec", encoding=Encoding.JSON),
        WireField("asset_feed_spec", encoding=Encoding.JSON),
        WireField("template_url"),
        WireField("title"),
        WireField("body"),
        WireField("image_hash"),
        WireField("image_url"),
        WireField("video_id"),
        WireField("link_url"),
        WireField("object_url"),
        WireField("object_type"),
        WireField("call_to_action_type"),
        WireField("call_to_action", encoding=Encoding.JSON),
        WireField("url_tags"),
        WireField("instagram_actor_id"),
        WireField("instagram_permalink_url"),
        WireField("product_set_id"),
        WireField("degrees_of_freedom_spec", encoding=Encoding.JSON),
        WireField("platform_customizations", encoding=Encoding.JSON),
        WireField("branded_content_sponsor_page_id"),
        WireField("authorization_category"),
        WireField("adlabels", encoding=Encoding.JSON),
    ),
)

CREATIVE_UPDATE_SPEC = PayloadSpec(
    UpdateCreativeRequest,
    (
        WireField("name"),
        WireField("status"),
        WireField("adlabels", encoding=Encoding.JSON),
        WireField("authorization_category"),
    ),
)

PREVIEW_SPEC = PayloadSpec(
    CreativePreviewRequest,
    (
        WireField("ad_format"),
        WireField("creative_spec", "creative", Encoding.JSON),
        WireField("locale"),
        WireField("post", encoding=Encoding.JSON),
        WireField("product_item_ids", encoding=Encoding.JSON),
        WireField("place_page_id"),
        WireField("start_date"),
        WireField("end_date"),
        WireField("dynamic_creative_spec", encoding=Encoding.JSON),
        WireField("dynamic_asset_label"),
    ),
    # creative_id vai no path (/{creative_id}/previews)
    skipped=("creative_id",),
)

INSIGHTS_SPEC = PayloadSpec(
    InsightsRequest,
    (
        WireField("fields", encoding=Encoding.CSV),
        WireField("time_range", encoding=Encoding.JSON, transform=lambda r: r.to_wire()),
        WireField("date_preset"),
        WireField("level"),
        WireField("breakdowns", encoding=Encoding.CSV),
        WireField("filtering", encoding=Encoding.JSON),
        WireField("sort", encoding=Encoding.CSV),
        WireField("time_increment"),
        WireField("limit"),
        WireField("after"),
    ),
)


# =============================================================================
# Guardas de estratégia de lance
# =============================================================================

def apply_bid_strategy_guard(
    payload: dict[str, Any],
    bid_strategy: Optional[BidStrategy | str],
) -> dict[str, Any]:
    """
    Remove bid_amount do payload quando a estratégia não admite lance.

    Só atua quando a estratégia é conhecida. Aplicado mesmo após o validador.
    """
    if bid_strategy is None:
        return payload
    strategy = BidStrategy(bid_strategy)

    if strategy in UNCAPPED_STRATEGIES and "bid_amount" in payload:
        logger.warning(
            "bid_amount removido do payload",
            bid_strategy=strategy.value,
            bid_amount=payload["bid_amount"],
        )
        payload.pop("bid_amount")
    elif strategy in OPTIONAL_BID_STRATEGIES and payload.get("bid_amount", 1) <= 0:
        payload.pop("bid_amount")
    return payload


def _reject_both_budgets(payload: dict[str, Any]) -> None:
    if "daily_budget" in payload and "lifetime_budget" in payload:
        raise ValidationException(
            "budget", "daily_budget e lifetime_budget são mutuamente exclusivos"
        )


def build_campaign_create_payload(request: CreateCampaignRequest) -> dict[str, Any]:
    payload = CAMPAIGN_CREATE_SPEC.build(request)
    return apply_bid_strategy_guard(payload, request.bid_strategy or DEFAULT_BID_STRATEGY)


def build_campaign_update_payload(
    patch: UpdateCampaignRequest,
    bid_strategy: Optional[BidStrategy | str] = None,
) -> dict[str, Any]:
    payload = CAMPAIGN_UPDATE_SPEC.build(patch)
    return apply_bid_strategy_guard(payload, patch.bid_strategy or bid_strategy)


def build_adset_create_payload(
    request: CreateAdSetRequest,
    remote_campaign_id: str,
) -> dict[str, Any]:
    payload = ADSET_CREATE_SPEC.build(request)
    _reject_both_budgets(payload)
    payload["campaign_id"] = remote_campaign_id
    return apply_bid_strategy_guard(payload, request.bid_strategy or DEFAULT_BID_STRATEGY)


def build_adset_update_payload(
    patch: UpdateAdSetRequest,
    bid_strategy: Optional[BidStrategy | str] = None,
) -> dict[str, Any]:
    payload = ADSET_UPDATE_SPEC.build(patch)
    _reject_both_budgets(payload)
    return apply_bid_strategy_guard(payload, patch.bid_strategy or bid_strategy)


def build_ad_create_payload(request: CreateAdRequest) -> dict[str, Any]:
    return AD_CREATE_SPEC.build(request)


def build_ad_update_payload(patch: UpdateAdRequest) -> dict[str, Any]:
    return AD_UPDATE_SPEC.build(patch)


def build_creative_create_payload(request: CreateCreativeRequest) -> dict[str, Any]:
    return CREATIVE_CREATE_SPEC.build(request)


def build_creative_update_payload(patch: UpdateCreativeRequest) -> dict[str, Any]:
    return CREATIVE_UPDATE_SPEC.build(patch)


def build_preview_params(request: CreativePreviewRequest) -> dict[str, Any]:
    return PREVIEW_SPEC.build(request)


def build_insights_params(
    request: Optional[InsightsRequest],
    default_fields: Sequence[str],
) -> dict[str, Any]:
    params = INSIGHTS_SPEC.build(request) if request is not None else {}
    params.setdefault("fields", ",".join(default_fields))
    return params
