"""Duty status evaluation at an explicit instant."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ...models.domain import CandidatePharmacy, DutyPeriod
from ..clock import ensure_aware


def is_on_duty(periods: Iterable[DutyPeriod], at: datetime) -> bool:
    """Return True if some period covers ``at``, both bounds inclusive."""

    ensure_aware(at, "at")
    return any(period.start <= at <= period.end for period in periods)


def active_period(periods: Iterable[DutyPeriod], at: datetime) -> Optional[DutyPeriod]:
    ensure_aware(at, "at")
    for period in periods:
        if period.start <= at <= period.end:
            return period
    return None


def filter_on_duty(pharmacies: Sequence[CandidatePharmacy], at: datetime) -> list[CandidatePharmacy]:
    """Keep the candidates on duty at ``at``, in their original order."""

    return [candidate for candidate in pharmacies if is_on_duty(candidate.duty_periods, at)]


def upcoming_periods(periods: Iterable[DutyPeriod], at: datetime) -> list[DutyPeriod]:
    """Periods that have not ended by ``at``, earliest start first."""

    ensure_aware(at, "at")
    return sorted((period for period in periods if period.end >= at), key=lambda period: period.start)
