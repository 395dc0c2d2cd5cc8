from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current time, timezone-aware UTC.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC (MySQL DATETIME columns)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    return int(ensure_utc(value).timestamp() * 1000)


def from_epoch_ms(value: float) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def coerce_datetime(value: Any) -> Optional[datetime]:
    """Best-effort conversion of stored timestamp values.

    Stores hand back ``datetime`` (Firestore ``DatetimeWithNanoseconds`` is a
    subclass), but older documents may hold ISO strings or epoch millis.
    Returns ``None`` for anything that cannot be interpreted.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        try:
            return from_epoch_ms(value)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return ensure_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def parse_range_bound(value: Optional[str], *, end_of_day: bool) -> Optional[datetime]:
    """Parse an inclusive date-range bound.

    ``YYYY-MM-DD`` expands to the start (or end) of that UTC day; full ISO
    datetimes are used as given. Raises ``ValueError`` on malformed input.
    """

    if value is None or not str(value).strip():
        return None
    s = str(value).strip()
    if len(s) == 10:
        d = parse_iso_date(s)
        t = time.max if end_of_day else time.min
        return datetime.combine(d, t, tzinfo=timezone.utc)
    return ensure_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))


def start_of_day(value: datetime) -> datetime:
    value = ensure_utc(value)
    return datetime.combine(value.date(), time.min, tzinfo=timezone.utc)
