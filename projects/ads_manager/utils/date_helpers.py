"""
Utilitários de data e hora para a integração com a Graph API.
"""

from datetime import date, datetime, timedelta, timezone


def get_today_utc() -> date:
    """Get today's date in UTC."""
    return datetime.now(timezone.utc).date()


def get_date_range(days_back: int) -> tuple[str, str]:
    """Get date range as (since, until) strings in YYYY-MM-DD format."""
    today = get_today_utc()
    since = today - timedelta(days=days_back)
    return since.strftime("%Y-%m-%d"), today.strftime("%Y-%m-%d")


def parse_facebook_datetime(dt_str: str | datetime | None) -> datetime | None:
    """Parse Facebook API datetime string (ISO 8601).

    Returns a naive (timezone-unaware) datetime in UTC,
    compatible with TIMESTAMP WITHOUT TIME ZONE columns.
    """
    if not dt_str:
        return None
    if isinstance(dt_str, datetime):
        dt = dt_str
    else:
        try:
            # Graph API devolve offsets sem ":" (2025-01-31T10:00:00+0000)
            raw = dt_str.replace("Z", "+00:00")
            if len(raw) > 5 and raw[-5] in "+-" and raw[-3] != ":":
                raw = f"{raw[:-2]}:{raw[-2:]}"
            dt = datetime.fromisoformat(raw)
        except (ValueError, AttributeError):
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def format_facebook_datetime(dt: datetime | None) -> str | None:
    """Serializa datetime para ISO 8601. Datas naive são tratadas como UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()
