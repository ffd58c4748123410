from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    """Accept YYYY-MM-DD or a full ISO timestamp; empty means None."""
    if not value:
        return None
    value = value.strip()
    try:
        return parse_iso_date(value)
    except ValueError:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) range covering one calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def fmt_datetime(value: Optional[datetime], *, missing: str = "-") -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else missing
