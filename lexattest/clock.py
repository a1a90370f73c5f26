"""Injectable time source. Tests pass a fixed clock for stable timestamps."""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(UTC)


def as_utc(moment: datetime) -> datetime:
    """Convert to UTC; naive datetimes are taken to already be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def iso_utc(moment: datetime) -> str:
    """RFC3339 UTC timestamp, e.g. ``2025-04-15T09:30:00+00:00``."""
    return as_utc(moment).isoformat()
