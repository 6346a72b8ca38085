from datetime import datetime
from decimal import Decimal

from projects.ads_manager.utils.date_helpers import parse_facebook_datetime
from projects.ads_manager.utils.metrics import parse_insight_metrics, summarize_insights, zero_metrics
from projects.ads_manager.utils.money import from_minor_units, to_minor_units


def test_minor_units_round_trip():
    assert to_minor_units(Decimal("12.34")) == 1234
    assert from_minor_units(1234) == Decimal("12.34")
    assert from_minor_units("1234") == Decimal("12.34")
    assert to_minor_units(from_minor_units(1234)) == 1234


def test_minor_units_rounding_and_invalid_values():
    assert to_minor_units("0.005") == 1
    assert to_minor_units(10) == 1000
    assert from_minor_units(None) is None
    assert from_minor_units("") is None
    assert from_minor_units("abc") is None


def test_parse_insight_metrics_handles_strings_and_actions():
    metrics = parse_insight_metrics(
        {
            "impressions": "1500",
            "clicks": "30",
            "spend": "45.10",
            "ctr": "2.0",
            "conversions": [{"action_type": "lead", "value": "4"}],
            "purchase_roas": [{"action_type": "omni_purchase", "value": "3.2"}],
            "reach": "not-a-number",
        }
    )

    assert metrics["impressions"] == 1500
    assert metrics["spend"] == 45.10
    assert metrics["conversions"] == 4
    assert metrics["roas"] == 3.2
    assert metrics["reach"] == 0
    assert metrics["cpm"] == 0.0


def test_zero_metrics_types():
    zeros = zero_metrics(("impressions", "spend"))
    assert zeros == {"impressions": 0, "spend": 0.0}
    assert isinstance(zeros["impressions"], int)


def test_summary_without_impressions_has_no_ratios():
    summary = summarize_insights([])
    assert summary == {"impressions": 0, "clicks": 0, "spend": 0.0, "reach": 0}


def test_parse_facebook_datetime_offsets():
    assert parse_facebook_datetime("2025-01-31T10:00:00+0000") == datetime(2025, 1, 31, 10, 0)
    assert parse_facebook_datetime("2025-01-31T10:00:00-0300") == datetime(2025, 1, 31, 13, 0)
    assert parse_facebook_datetime("2025-01-31T10:00:00Z") == datetime(2025, 1, 31, 10, 0)
    assert parse_facebook_datetime("garbage") is None
    assert parse_facebook_datetime(None) is None
