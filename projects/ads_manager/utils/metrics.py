"""
Parsing e agregação de métricas de insights da Graph API.

A Graph API devolve números como strings; aqui tudo é convertido de forma
segura (valores inválidos viram zero) e as divisões nunca levantam
ZeroDivisionError.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional

# Métricas armazenadas localmente em campanhas
CAMPAIGN_METRIC_FIELDS = (
    "impressions",
    "clicks",
    "spend",
    "conversions",
    "ctr",
    "cpc",
    "cpm",
    "roas",
    "frequency",
    "reach",
)

# Métricas armazenadas localmente em anúncios
AD_METRIC_FIELDS = ("impressions", "clicks", "spend", "ctr", "cpc", "conversions")

_INT_METRICS = {"impressions", "clicks", "conversions", "reach"}


def parse_int(value: Any) -> int:
    """Converte string/num da API para int (0 se inválido)."""
    if value is None or value == "":
        return 0
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError, TypeError):
        return 0


def parse_float(value: Any) -> float:
    """Converte string/num da API para float (0.0 se inválido)."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (ValueError, TypeError):
        return 0.0


def extract_action_value(actions: Any, action_types: Iterable[str]) -> Optional[str]:
    """Extrai o valor de uma lista de AdsActionStats pelo action_type."""
    if not isinstance(actions, list):
        return None
    wanted = set(action_types)
    for item in actions:
        if isinstance(item, dict) and item.get("action_type") in wanted:
            return item.get("value")
    return None


def zero_metrics(fields: Iterable[str] = CAMPAIGN_METRIC_FIELDS) -> dict[str, float | int]:
    """Métricas zeradas usadas quando a API não responde."""
    return {f: 0 if f in _INT_METRICS else 0.0 for f in fields}


def parse_insight_metrics(
    insight: dict[str, Any],
    fields: Iterable[str] = CAMPAIGN_METRIC_FIELDS,
) -> dict[str, float | int]:
    """Converte uma linha de insights da Graph API em métricas numéricas."""
    raw = dict(insight or {})

    # conversions pode vir como lista de actions
    if isinstance(raw.get("conversions"), list):
        raw["conversions"] = extract_action_value(
            raw["conversions"], ("offsite_conversion", "onsite_conversion.purchase", "lead")
        )
    if "roas" not in raw:
        roas = raw.get("return_on_ad_spend")
        if roas is None:
            roas = extract_action_value(raw.get("purchase_roas"), ("omni_purchase",))
        raw["roas"] = roas

    return {
        f: parse_int(raw.get(f)) if f in _INT_METRICS else parse_float(raw.get(f))
        for f in fields
    }


def safe_divide(
    numerator: int | float | Decimal,
    denominator: int | float | Decimal,
    precision: int = 2,
) -> Optional[Decimal]:
    """Safely divide two numbers, returning None if denominator is 0."""
    try:
        if not denominator:
            return None
        result = Decimal(str(numerator)) / Decimal(str(denominator))
        return result.quantize(Decimal(f"0.{'0' * precision}"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ZeroDivisionError):
        return None


def summarize_insights(rows: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """
    Soma impressões, cliques, gasto e alcance e deriva CTR, CPC e CPM.

    CTR é percentual; CPM é custo por mil impressões.
    """
    summary: dict[str, Any] = {"impressions": 0, "clicks": 0, "spend": 0.0, "reach": 0}
    for row in rows:
        summary["impressions"] += parse_int(row.get("impressions"))
        summary["clicks"] += parse_int(row.get("clicks"))
        summary["spend"] += parse_float(row.get("spend"))
        summary["reach"] += parse_int(row.get("reach"))

    summary["spend"] = round(summary["spend"], 2)
    if summary["impressions"] > 0:
        ctr = safe_divide(summary["clicks"] * 100, summary["impressions"])
        cpc = safe_divide(summary["spend"], summary["clicks"])
        cpm = safe_divide(summary["spend"] * 1000, summary["impressions"])
        summary["ctr"] = float(ctr) if ctr is not None else 0.0
        summary["cpc"] = float(cpc) if cpc is not None else 0.0
        summary["cpm"] = float(cpm) if cpm is not None else 0.0
    return summary
