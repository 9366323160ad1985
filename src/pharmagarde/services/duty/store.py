"""Duty interval store: guards the per-pharmacy non-overlap invariant."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from ...errors import OverlapError, ValidationError
from ...models.domain import DutyPeriod
from ...persistence.base import PharmacyRepository
from ..clock import ensure_aware


def overlaps(period: DutyPeriod, start: datetime, end: datetime) -> bool:
    return period.start <= end and period.end >= start


def find_overlap(
    periods: Iterable[DutyPeriod],
    start: datetime,
    end: datetime,
    exclude_id: Optional[str] = None,
) -> Optional[DutyPeriod]:
    """Return the first period colliding with [start, end], skipping ``exclude_id``."""

    for period in periods:
        if exclude_id is not None and period.id == exclude_id:
            continue
        if overlaps(period, start, end):
            return period
    return None


def validate_window(start: datetime, end: datetime) -> None:
    ensure_aware(start, "start")
    ensure_aware(end, "end")
    if end <= start:
        raise ValidationError("Duty period must end after it starts", field="end")


class DutyIntervalStore:
    """Creates, moves and removes duty periods.

    Callers are expected to have authorized the request already; the overlap
    check runs whoever the caller is. Each write is a read of the schedule
    snapshot followed by a conditional write against that snapshot's version,
    so a concurrent writer surfaces as ``ConcurrencyConflict`` instead of an
    overlapping pair.
    """

    def __init__(self, repository: PharmacyRepository) -> None:
        self._repository = repository

    def create(
        self,
        pharmacy_id: str,
        start: datetime,
        end: datetime,
        note: Optional[str] = None,
    ) -> DutyPeriod:
        validate_window(start, end)
        schedule = self._repository.load_schedule(pharmacy_id)
        conflict = find_overlap(schedule.periods, start, end)
        if conflict is not None:
            raise OverlapError(pharmacy_id, conflict.id)
        return self._repository.insert_duty_period(
            pharmacy_id,
            start,
            end,
            note,
            expected_version=schedule.version,
        )

    def update(
        self,
        period_id: str,
        start: datetime,
        end: datetime,
        note: Optional[str] = None,
    ) -> DutyPeriod:
        """Move a period to a new window; ``note=None`` keeps the current note."""

        validate_window(start, end)
        existing = self._repository.get_duty_period(period_id)
        schedule = self._repository.load_schedule(existing.pharmacy_id)
        conflict = find_overlap(schedule.periods, start, end, exclude_id=period_id)
        if conflict is not None:
            raise OverlapError(existing.pharmacy_id, conflict.id)
        updated = replace(
            existing,
            start=start,
            end=end,
            note=note if note is not None else existing.note,
        )
        return self._repository.replace_duty_period(updated, expected_version=schedule.version)

    def delete(self, period_id: str) -> None:
        self._repository.delete_duty_period(period_id)
