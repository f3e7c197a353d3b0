from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.constants import MS_PER_HOUR, MS_PER_MINUTE, MS_PER_SECOND


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value.strip(), "%H:%M").time()


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """IANA zone name to tzinfo; empty means the server's local time."""
    name = (name or "").strip()
    return ZoneInfo(name) if name else None


def now_ms() -> int:
    """Current wall-clock instant in epoch milliseconds.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return int(datetime.now(timezone.utc).timestamp() * MS_PER_SECOND)


def to_ms(value: datetime) -> int:
    return int(value.timestamp() * MS_PER_SECOND)


def from_ms(value: int, tz: Optional[tzinfo] = None) -> datetime:
    """Epoch ms to an aware datetime (naive local time when tz is None)."""
    return datetime.fromtimestamp(value / MS_PER_SECOND, tz)


def local_date(value_ms: int, tz: Optional[tzinfo] = None) -> date:
    return from_ms(value_ms, tz).date()


def inclusive_days(start: date, end: date) -> int:
    """Inclusive calendar day count (same day counts as 1)."""
    return (end - start).days + 1


def format_duration(ms: int) -> str:
    """Render a millisecond duration as ``Hh Mm Ss``.

    Presentation only; the stored model keeps the integer milliseconds.
    """
    ms = max(int(ms), 0)
    hours = ms // MS_PER_HOUR
    minutes = (ms % MS_PER_HOUR) // MS_PER_MINUTE
    seconds = (ms % MS_PER_MINUTE) // MS_PER_SECOND
    return f"{hours}h {minutes}m {seconds}s"
