from __future__ import annotations

from contextlib import suppress
from datetime import UTC, date, datetime
from typing import Any
from zoneinfo import ZoneInfo

LOCAL_TZ = ZoneInfo("America/New_York")

DAYS_PER_YEAR = 365.25


def today_local() -> date:
    """Return today's date in the local (city register) timezone."""
    return datetime.now(tz=LOCAL_TZ).date()


def parse_date(value: Any) -> date | None:
    """Parse the date formats the public-record datasets emit to a date object."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw or raw.lower() == "current":
            return None
        with suppress(ValueError):
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        for fmt in ("%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%d", "%m/%d/%Y", "%m/%d/%Y %H:%M:%S", "%Y%m%d"):
            with suppress(ValueError):
                return datetime.strptime(raw, fmt).date()
    return None


def years_between(earlier: date, later: date) -> float:
    """Fractional years from ``earlier`` to ``later`` (negative if reversed)."""
    return (later - earlier).days / DAYS_PER_YEAR


def date_sort_key(value: Any) -> float:
    """Sort key for descending date order; unparseable dates sort last."""
    parsed = parse_date(value)
    if parsed is None:
        return float("-inf")
    return datetime.combine(parsed, datetime.min.time(), tzinfo=UTC).timestamp()
