"""In-process repository used for tests and local runs without Supabase."""

from __future__ import annotations

import threading
import uuid
from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from ..errors import ConcurrencyConflict, NotFoundError, OverlapError
from ..models.domain import (
    CandidatePharmacy,
    DutyPeriod,
    DutySchedule,
    Feedback,
    FeedbackStatus,
    Pharmacy,
    PharmacyStatus,
    Rating,
)
from ..services.duty.store import find_overlap
from .base import PharmacyRepository


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRepository(PharmacyRepository):
    """Dictionary-backed repository.

    Reads return copies so callers never mutate stored state. One re-entrant
    lock makes the version check, the overlap re-check and the write of a duty
    period a single atomic step.
    """

    backend = "memory"

    def __init__(self, *, now: Callable[[], datetime] = _utcnow) -> None:
        self._now = now
        self._pharmacies: dict[str, Pharmacy] = {}
        self._periods: dict[str, DutyPeriod] = {}
        self._versions: dict[str, int] = {}
        self._ratings: dict[str, Rating] = {}
        self._rating_keys: dict[tuple[str, str], str] = {}
        self._feedback: dict[str, Feedback] = {}
        self._lock = threading.RLock()

    def _require_pharmacy(self, pharmacy_id: str) -> Pharmacy:
        pharmacy = self._pharmacies.get(pharmacy_id)
        if pharmacy is None:
            raise NotFoundError("Pharmacy", pharmacy_id)
        return pharmacy

    def _periods_for(self, pharmacy_id: str) -> tuple[DutyPeriod, ...]:
        return tuple(
            sorted(
                (period for period in self._periods.values() if period.pharmacy_id == pharmacy_id),
                key=lambda period: period.start,
            )
        )

    # Pharmacies

    def get_pharmacy(self, pharmacy_id: str) -> Pharmacy:
        with self._lock:
            return replace(self._require_pharmacy(pharmacy_id))

    def find_pharmacy_by_owner(self, owner_id: str) -> Optional[Pharmacy]:
        with self._lock:
            for pharmacy in self._pharmacies.values():
                if pharmacy.owner_id == owner_id:
                    return replace(pharmacy)
        return None

    def list_pharmacies(self, status: Optional[PharmacyStatus] = None) -> list[Pharmacy]:
        with self._lock:
            return [
                replace(pharmacy)
                for pharmacy in self._pharmacies.values()
                if status is None or pharmacy.status == status
            ]

    def list_candidates(self, status: PharmacyStatus = PharmacyStatus.APPROVED) -> list[CandidatePharmacy]:
        with self._lock:
            return [
                CandidatePharmacy(
                    pharmacy=replace(pharmacy),
                    duty_periods=self._periods_for(pharmacy.id),
                    ratings=tuple(self._approved_ratings(pharmacy.id)),
                )
                for pharmacy in self._pharmacies.values()
                if pharmacy.status == status
            ]

    def add_pharmacy(self, pharmacy: Pharmacy) -> Pharmacy:
        with self._lock:
            stored = replace(pharmacy, created_at=pharmacy.created_at or self._now())
            self._pharmacies[stored.id] = stored
            self._versions.setdefault(stored.id, 0)
            return replace(stored)

    def update_pharmacy(self, pharmacy_id: str, changes: dict[str, Any]) -> Pharmacy:
        with self._lock:
            updated = replace(self._require_pharmacy(pharmacy_id), **changes)
            self._pharmacies[pharmacy_id] = updated
            return replace(updated)

    def set_pharmacy_status(self, pharmacy_ids: Sequence[str], status: PharmacyStatus) -> int:
        changed = 0
        with self._lock:
            for pharmacy_id in set(pharmacy_ids):
                pharmacy = self._pharmacies.get(pharmacy_id)
                if pharmacy is None:
                    continue
                pharmacy.status = status
                changed += 1
        return changed

    def increment_view_count(self, pharmacy_id: str) -> int:
        with self._lock:
            pharmacy = self._require_pharmacy(pharmacy_id)
            pharmacy.view_count += 1
            return pharmacy.view_count

    def delete_pharmacy(self, pharmacy_id: str) -> None:
        with self._lock:
            self._require_pharmacy(pharmacy_id)
            del self._pharmacies[pharmacy_id]
            self._versions.pop(pharmacy_id, None)
            self._periods = {key: period for key, period in self._periods.items() if period.pharmacy_id != pharmacy_id}
            self._ratings = {key: rating for key, rating in self._ratings.items() if rating.pharmacy_id != pharmacy_id}
            self._rating_keys = {key: rid for key, rid in self._rating_keys.items() if key[0] != pharmacy_id}
            for entry in self._feedback.values():
                if entry.pharmacy_id == pharmacy_id:
                    entry.pharmacy_id = None

    def count_related(self, pharmacy_ids: Sequence[str]) -> dict[str, tuple[int, int]]:
        with self._lock:
            ratings = Counter(rating.pharmacy_id for rating in self._ratings.values())
            periods = Counter(period.pharmacy_id for period in self._periods.values())
        return {pharmacy_id: (ratings[pharmacy_id], periods[pharmacy_id]) for pharmacy_id in pharmacy_ids}

    # Duty periods

    def load_schedule(self, pharmacy_id: str) -> DutySchedule:
        with self._lock:
            self._require_pharmacy(pharmacy_id)
            return DutySchedule(
                pharmacy_id=pharmacy_id,
                version=self._versions.get(pharmacy_id, 0),
                periods=self._periods_for(pharmacy_id),
            )

    def list_all_duty_periods(self) -> list[DutyPeriod]:
        with self._lock:
            return list(self._periods.values())

    def get_duty_period(self, period_id: str) -> DutyPeriod:
        with self._lock:
            period = self._periods.get(period_id)
        if period is None:
            raise NotFoundError("DutyPeriod", period_id)
        return period

    def _commit_period(self, period: DutyPeriod, expected_version: int, exclude_id: Optional[str]) -> DutyPeriod:
        with self._lock:
            self._require_pharmacy(period.pharmacy_id)
            if self._versions.get(period.pharmacy_id, 0) != expected_version:
                raise ConcurrencyConflict(period.pharmacy_id)
            if exclude_id is not None and exclude_id not in self._periods:
                raise NotFoundError("DutyPeriod", exclude_id)
            conflict = find_overlap(
                self._periods_for(period.pharmacy_id),
                period.start,
                period.end,
                exclude_id=exclude_id,
            )
            if conflict is not None:
                raise OverlapError(period.pharmacy_id, conflict.id)
            self._periods[period.id] = period
            self._versions[period.pharmacy_id] = expected_version + 1
            return period

    def insert_duty_period(
        self,
        pharmacy_id: str,
        start: datetime,
        end: datetime,
        note: Optional[str],
        *,
        expected_version: int,
    ) -> DutyPeriod:
        period = DutyPeriod(id=str(uuid.uuid4()), pharmacy_id=pharmacy_id, start=start, end=end, note=note)
        return self._commit_period(period, expected_version, exclude_id=None)

    def replace_duty_period(self, period: DutyPeriod, *, expected_version: int) -> DutyPeriod:
        return self._commit_period(period, expected_version, exclude_id=period.id)

    def delete_duty_period(self, period_id: str) -> None:
        with self._lock:
            if self._periods.pop(period_id, None) is None:
                raise NotFoundError("DutyPeriod", period_id)

    # Ratings

    def _approved_ratings(self, pharmacy_id: str) -> list[Rating]:
        ratings = [
            replace(rating)
            for rating in self._ratings.values()
            if rating.pharmacy_id == pharmacy_id and rating.approved
        ]
        ratings.sort(key=lambda rating: rating.created_at, reverse=True)
        return ratings

    def list_approved_ratings(self, pharmacy_id: str) -> list[Rating]:
        with self._lock:
            return self._approved_ratings(pharmacy_id)

    def upsert_rating(
        self,
        pharmacy_id: str,
        anonymous_id: str,
        score: int,
        comment: Optional[str],
        *,
        approved_on_create: bool,
    ) -> tuple[Rating, bool]:
        with self._lock:
            self._require_pharmacy(pharmacy_id)
            now = self._now()
            existing_id = self._rating_keys.get((pharmacy_id, anonymous_id))
            if existing_id is not None:
                rating = self._ratings[existing_id]
                rating.score = score
                rating.comment = comment
                rating.updated_at = now
                return replace(rating), False

            rating = Rating(
                id=str(uuid.uuid4()),
                pharmacy_id=pharmacy_id,
                score=score,
                anonymous_id=anonymous_id,
                comment=comment,
                approved=approved_on_create,
                created_at=now,
                updated_at=now,
            )
            self._ratings[rating.id] = rating
            self._rating_keys[(pharmacy_id, anonymous_id)] = rating.id
            return replace(rating), True

    def set_rating_approval(self, rating_id: str, approved: bool) -> Rating:
        with self._lock:
            rating = self._ratings.get(rating_id)
            if rating is None:
                raise NotFoundError("Rating", rating_id)
            rating.approved = approved
            return replace(rating)

    # Feedback

    def add_feedback(self, feedback: Feedback) -> Feedback:
        with self._lock:
            stored = replace(feedback, created_at=feedback.created_at or self._now())
            self._feedback[stored.id] = stored
            return replace(stored)

    def list_feedback(self, status: Optional[FeedbackStatus] = None) -> list[Feedback]:
        with self._lock:
            entries = [
                replace(entry)
                for entry in self._feedback.values()
                if status is None or entry.status == status
            ]
        entries.sort(key=lambda entry: entry.created_at, reverse=True)
        return entries

    def set_feedback_status(self, feedback_id: str, status: FeedbackStatus) -> Feedback:
        with self._lock:
            entry = self._feedback.get(feedback_id)
            if entry is None:
                raise NotFoundError("Feedback", feedback_id)
            entry.status = status
            return replace(entry)
