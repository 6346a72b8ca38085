"""
Validação de campos e da máquina de estados de estratégia de lance.

Estratégias:
    LOWEST_COST_WITHOUT_CAP   -> bid_amount ausente ou zero
    LOWEST_COST_WITH_BID_CAP  -> bid_amount obrigatório e positivo
    COST_CAP / TARGET_COST    -> bid_amount obrigatório e positivo
    LOWEST_COST_WITH_MIN_ROAS -> bid_amount opcional, enviado só se positivo

Todas as falhas levantam ValidationException antes de qualquer chamada remota.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from shared.core.exceptions import ValidationException
from shared.core.logging import get_logger
from projects.ads_manager.schemas.adsets import CreateAdSetRequest, UpdateAdSetRequest
from projects.ads_manager.schemas.ads import CreateAdRequest
from projects.ads_manager.schemas.base import BidStrategy, EntityStatus
from projects.ads_manager.schemas.campaigns import CreateCampaignRequest, UpdateCampaignRequest
from projects.ads_manager.schemas.creatives import CreateCreativeRequest, CreativePreviewRequest
from projects.ads_manager.utils.date_helpers import parse_facebook_datetime

logger = get_logger(__name__)

DEFAULT_BID_STRATEGY = BidStrategy.LOWEST_COST_WITHOUT_CAP

UNCAPPED_STRATEGIES = frozenset({BidStrategy.LOWEST_COST_WITHOUT_CAP})
BID_REQUIRED_STRATEGIES = frozenset({
    BidStrategy.LOWEST_COST_WITH_BID_CAP,
    BidStrategy.COST_CAP,
    BidStrategy.TARGET_COST,
})
OPTIONAL_BID_STRATEGIES = frozenset({BidStrategy.LOWEST_COST_WITH_MIN_ROAS})

CREATABLE_STATUSES = frozenset({EntityStatus.ACTIVE, EntityStatus.PAUSED})

CAMPAIGN_REQUIRED_FIELDS = ("name", "objective")
ADSET_REQUIRED_FIELDS = (
    "name",
    "campaign_id",
    "optimization_goal",
    "billing_event",
    "targeting",
    "start_time",
    "end_time",
)
AD_REQUIRED_FIELDS = ("name", "adset_id", "creative_id")
CREATIVE_TYPE_FIELDS = ("object_story_id", "object_story_spec", "asset_feed_spec", "template_url")

TARGETING_MIN_AGE = 13
TARGETING_MAX_AGE = 65

BUDGET_FIELDS = ("daily_budget", "lifetime_budget")
BID_FIELDS = ("bid_strategy", "bid_amount")
SCHEDULE_FIELDS = ("start_time", "end_time")


def _to_decimal(field: str, value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationException(field, "valor numérico inválido")


def _is_positive(field: str, value: Any) -> bool:
    amount = _to_decimal(field, value)
    return amount is not None and amount > 0


def require_fields(source: Any, fields: Iterable[str]) -> None:
    """Garante que cada campo está presente e não vazio."""
    for field in fields:
        value = getattr(source, field, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationException(field, "campo obrigatório")
        if isinstance(value, (dict, list)) and not value:
            raise ValidationException(field, "campo obrigatório")


def resolve_bid_strategy(strategy: Optional[BidStrategy | str]) -> BidStrategy:
    """Estratégia informada ou a padrão (LOWEST_COST_WITHOUT_CAP)."""
    if strategy is None or strategy == "":
        return DEFAULT_BID_STRATEGY
    try:
        return BidStrategy(strategy)
    except ValueError:
        raise ValidationException("bid_strategy", f"estratégia desconhecida: {strategy}")


def validate_bid_amount(
    strategy: Optional[BidStrategy | str],
    bid_amount: Any,
) -> Optional[Decimal]:
    """
    Aplica a regra da estratégia ao bid_amount.

    Returns:
        O bid_amount a ser persistido/enviado, ou None quando não deve existir.
    """
    resolved = resolve_bid_strategy(strategy)

    if resolved in UNCAPPED_STRATEGIES:
        if _is_positive("bid_amount", bid_amount):
            raise ValidationException(
                "bid_amount",
                f"não é permitido com a estratégia {resolved.value}",
            )
        return None

    if resolved in BID_REQUIRED_STRATEGIES:
        if not _is_positive("bid_amount", bid_amount):
            raise ValidationException(
                "bid_amount",
                f"obrigatório e maior que zero para a estratégia {resolved.value}",
            )
        return _to_decimal("bid_amount", bid_amount)

    # MIN_ROAS: opcional
    if _is_positive("bid_amount", bid_amount):
        return _to_decimal("bid_amount", bid_amount)
    return None


def validate_budgets(daily_budget: Any, lifetime_budget: Any, required: bool = True) -> None:
    """Orçamento diário e vitalício são mutuamente exclusivos e positivos."""
    if daily_budget is not None and lifetime_budget is not None:
        raise ValidationException(
            "budget", "daily_budget e lifetime_budget são mutuamente exclusivos"
        )
    if required and daily_budget is None and lifetime_budget is None:
        raise ValidationException("budget", "informe daily_budget ou lifetime_budget")
    for field, value in (("daily_budget", daily_budget), ("lifetime_budget", lifetime_budget)):
        if value is not None and not _is_positive(field, value):
            raise ValidationException(field, "deve ser maior que zero")


def validate_schedule(
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    end_field: str = "end_time",
) -> None:
    start = parse_facebook_datetime(start_time)
    end = parse_facebook_datetime(end_time)
    if start and end and end <= start:
        raise ValidationException(end_field, "deve ser posterior ao início")


def validate_targeting_age(targeting: Optional[dict[str, Any]]) -> None:
    """age_min <= age_max, ambos dentro de 13..65."""
    if not targeting:
        return
    age_min = targeting.get("age_min", targeting.get("ageMin"))
    age_max = targeting.get("age_max", targeting.get("ageMax"))
    for field, value in (("age_min", age_min), ("age_max", age_max)):
        if value is None:
            continue
        try:
            age = int(value)
        except (TypeError, ValueError):
            raise ValidationException(f"targeting.{field}", "idade inválida")
        if age < TARGETING_MIN_AGE or age > TARGETING_MAX_AGE:
            raise ValidationException(
                f"targeting.{field}",
                f"deve estar entre {TARGETING_MIN_AGE} e {TARGETING_MAX_AGE}",
            )
    if age_min is not None and age_max is not None and int(age_min) > int(age_max):
        raise ValidationException("targeting.age_min", "não pode ser maior que age_max")


def validate_creatable_status(status: EntityStatus) -> None:
    if status not in CREATABLE_STATUSES:
        raise ValidationException("status", "entidades são criadas como ACTIVE ou PAUSED")


# =============================================================================
# Campanhas
# =============================================================================

def validate_campaign_create(
    request: CreateCampaignRequest,
) -> tuple[BidStrategy, Optional[Decimal]]:
    """Valida a criação e devolve (estratégia resolvida, bid_amount efetivo)."""
    require_fields(request, CAMPAIGN_REQUIRED_FIELDS)
    validate_creatable_status(request.status)
    validate_budgets(request.daily_budget, request.lifetime_budget, required=True)
    strategy = resolve_bid_strategy(request.bid_strategy)
    bid_amount = validate_bid_amount(strategy, request.bid_amount)
    validate_schedule(request.start_time, request.end_time)
    validate_targeting_age(request.targeting_spec)
    return strategy, bid_amount


def _merged(patch: Any, current: Any, field: str) -> Any:
    if field in patch.model_fields_set:
        return getattr(patch, field)
    return getattr(current, field)


def _touches(patch: Any, fields: Iterable[str]) -> bool:
    return any(field in patch.model_fields_set for field in fields)


def _validate_patch(
    patch: Any,
    current: Any,
    targeting_field: str,
    budget_required: bool,
) -> tuple[BidStrategy, Optional[Decimal]]:
    """
    Valida apenas os grupos de campos que o patch altera.

    Um patch só de status não revalida orçamento, lance nem agenda.
    """
    if "name" in patch.model_fields_set:
        require_fields(patch, ("name",))

    if _touches(patch, BUDGET_FIELDS):
        validate_budgets(
            _merged(patch, current, "daily_budget"),
            _merged(patch, current, "lifetime_budget"),
            required=budget_required,
        )

    strategy = resolve_bid_strategy(_merged(patch, current, "bid_strategy"))
    if not _touches(patch, BID_FIELDS):
        bid_amount = current.bid_amount
    elif "bid_amount" in patch.model_fields_set or strategy not in UNCAPPED_STRATEGIES:
        bid_amount = validate_bid_amount(strategy, _merged(patch, current, "bid_amount"))
    else:
        bid_amount = None

    if _touches(patch, SCHEDULE_FIELDS):
        validate_schedule(_merged(patch, current, "start_time"), _merged(patch, current, "end_time"))
    if targeting_field in patch.model_fields_set:
        validate_targeting_age(getattr(patch, targeting_field))
    return strategy, bid_amount


def validate_campaign_update(
    patch: UpdateCampaignRequest,
    current: Any,
) -> tuple[BidStrategy, Optional[Decimal]]:
    """
    Valida o patch contra a campanha atual.

    Para trocar de orçamento diário para vitalício, o patch deve enviar o
    campo antigo explicitamente como null.
    """
    return _validate_patch(patch, current, "targeting_spec", budget_required=True)


# =============================================================================
# Ad sets
# =============================================================================

def validate_adset_create(
    request: CreateAdSetRequest,
    parent_has_budget: Optional[bool],
) -> tuple[BidStrategy, Optional[Decimal]]:
    """
    Valida a criação de ad set.

    ``parent_has_budget`` é None quando não é possível determinar se a campanha
    pai usa orçamento de campanha; nesse caso a ausência de orçamento no ad set
    é aceita com warning.
    """
    require_fields(request, ADSET_REQUIRED_FIELDS)
    validate_creatable_status(request.status)
    validate_budgets(request.daily_budget, request.lifetime_budget, required=False)

    if request.daily_budget is None and request.lifetime_budget is None:
        if parent_has_budget is None:
            logger.warning(
                "Ad set sem orçamento e orçamento da campanha desconhecido",
                campaign_id=request.campaign_id,
            )
        elif not parent_has_budget:
            raise ValidationException(
                "budget",
                "campanha sem orçamento: informe daily_budget ou lifetime_budget no ad set",
            )

    strategy = resolve_bid_strategy(request.bid_strategy)
    bid_amount = validate_bid_amount(strategy, request.bid_amount)
    validate_schedule(request.start_time, request.end_time)
    validate_targeting_age(request.targeting)
    return strategy, bid_amount


def validate_adset_update(
    patch: UpdateAdSetRequest,
    current: Any,
) -> tuple[BidStrategy, Optional[Decimal]]:
    return _validate_patch(patch, current, "targeting", budget_required=False)


# =============================================================================
# Anúncios e criativos
# =============================================================================

def parse_remote_id(field: str, value: Any) -> int:
    """IDs da Graph API são inteiros positivos (enviados como string)."""
    raw = str(value).strip() if value is not None else ""
    if not raw.isdigit() or int(raw) <= 0:
        raise ValidationException(field, "deve ser um número positivo")
    return int(raw)


def validate_ad_create(request: CreateAdRequest) -> tuple[int, int]:
    """Valida a criação de anúncio e devolve (adset_id, creative_id) numéricos."""
    require_fields(request, AD_REQUIRED_FIELDS)
    validate_creatable_status(request.status)
    adset_id = parse_remote_id("adset_id", request.adset_id)
    creative_id = parse_remote_id("creative_id", request.creative_id)
    validate_schedule(
        request.ad_schedule_start_time,
        request.ad_schedule_end_time,
        end_field="ad_schedule_end_time",
    )
    return adset_id, creative_id


def validate_creative_create(request: CreateCreativeRequest) -> None:
    require_fields(request, ("name",))
    if not any(getattr(request, field) for field in CREATIVE_TYPE_FIELDS):
        raise ValidationException(
            "creative",
            "informe object_story_id, object_story_spec, asset_feed_spec ou template_url",
        )


def validate_preview_request(request: CreativePreviewRequest) -> None:
    require_fields(request, ("ad_format",))
    if not request.creative_id and not request.creative_spec:
        raise ValidationException("creative", "informe creative_id ou creative_spec")
