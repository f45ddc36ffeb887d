from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ..core.constants import HOURS_PRECISION


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def at(day: date, t: time) -> datetime:
    return datetime.combine(day, t)


def whole_minutes(delta: timedelta) -> int:
    """Whole minutes in a non-negative interval (partial minutes dropped)."""
    return max(0, int(delta.total_seconds() // 60))


def to_hours(delta: timedelta) -> Decimal:
    seconds = Decimal(max(0, int(delta.total_seconds())))
    return (seconds / Decimal(3600)).quantize(Decimal(HOURS_PRECISION), rounding=ROUND_HALF_UP)


def isoformat_or_none(value: datetime | None) -> str | None:
    return value.isoformat(timespec="seconds") if value else None
