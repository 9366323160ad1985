"""Time source and timezone helpers shared by the duty services."""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Optional

from ..errors import ValidationError


class Clock:
    """Supplies "now" to the outermost callers; the core only sees explicit instants."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    def __init__(self, instant: datetime) -> None:
        self.instant = ensure_aware(instant)

    def now(self) -> datetime:
        return self.instant


def ensure_aware(value: datetime, field: Optional[str] = None) -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValidationError("Instant must carry a timezone offset", field=field)
    return value


def localize(value: datetime, zone: tzinfo) -> datetime:
    """Attach ``zone`` to naive datetimes; aware datetimes pass through untouched."""

    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value
