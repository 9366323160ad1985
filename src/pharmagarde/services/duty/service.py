"""Duty scheduling operations exposed to the API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...models.domain import DutyPeriod
from ...persistence.base import PharmacyRepository
from ..clock import Clock, ensure_aware
from .evaluator import is_on_duty
from .store import DutyIntervalStore


class DutyService:
    def __init__(self, repository: PharmacyRepository, clock: Optional[Clock] = None) -> None:
        self._repository = repository
        self._clock = clock or Clock()
        self.store = DutyIntervalStore(repository)

    def get_duty_status(self, pharmacy_id: str, at: Optional[datetime] = None) -> bool:
        reference = at if at is not None else self._clock.now()
        periods = self._repository.list_duty_periods(pharmacy_id)
        return is_on_duty(periods, reference)

    def schedule_duty(
        self,
        pharmacy_id: str,
        start: datetime,
        end: datetime,
        note: Optional[str] = None,
    ) -> DutyPeriod:
        return self.store.create(pharmacy_id, start, end, note)

    def reschedule_duty(
        self,
        period_id: str,
        start: datetime,
        end: datetime,
        note: Optional[str] = None,
    ) -> DutyPeriod:
        return self.store.update(period_id, start, end, note)

    def cancel_duty(self, period_id: str) -> None:
        self.store.delete(period_id)

    def get_period(self, period_id: str) -> DutyPeriod:
        return self._repository.get_duty_period(period_id)

    def list_duty_periods(
        self,
        pharmacy_id: Optional[str] = None,
        *,
        at: Optional[datetime] = None,
        upcoming: bool = False,
    ) -> list[DutyPeriod]:
        """List periods, optionally covering ``at`` or not yet ended, ordered by start."""

        if pharmacy_id:
            periods = self._repository.list_duty_periods(pharmacy_id)
        else:
            periods = self._repository.list_all_duty_periods()

        if at is not None:
            ensure_aware(at, "date")
            periods = [period for period in periods if period.start <= at <= period.end]
        if upcoming:
            now = self._clock.now()
            periods = [period for period in periods if period.end >= now]
        return sorted(periods, key=lambda period: period.start)
