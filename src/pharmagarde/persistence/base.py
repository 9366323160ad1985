"""Contract for the persistence collaborator consumed by the core."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional, Sequence

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


class PharmacyRepository(ABC):
    """Source of truth for pharmacies and everything they own.

    Duty-period writes are conditional on the ``expected_version`` read with
    :meth:`load_schedule`. Implementations must apply the version check, the
    overlap re-check and the write as one atomic unit, raising
    ``ConcurrencyConflict`` on a stale version and ``OverlapError`` when the
    window collides with a committed period.
    """

    backend: str = "abstract"

    # Pharmacies

    @abstractmethod
    def get_pharmacy(self, pharmacy_id: str) -> Pharmacy:
        raise NotImplementedError

    @abstractmethod
    def find_pharmacy_by_owner(self, owner_id: str) -> Optional[Pharmacy]:
        raise NotImplementedError

    @abstractmethod
    def list_pharmacies(self, status: Optional[PharmacyStatus] = None) -> list[Pharmacy]:
        raise NotImplementedError

    @abstractmethod
    def list_candidates(self, status: PharmacyStatus = PharmacyStatus.APPROVED) -> list[CandidatePharmacy]:
        """Pharmacies with their duty periods and approved ratings pre-joined."""
        raise NotImplementedError

    @abstractmethod
    def add_pharmacy(self, pharmacy: Pharmacy) -> Pharmacy:
        raise NotImplementedError

    @abstractmethod
    def update_pharmacy(self, pharmacy_id: str, changes: dict[str, Any]) -> Pharmacy:
        raise NotImplementedError

    @abstractmethod
    def set_pharmacy_status(self, pharmacy_ids: Sequence[str], status: PharmacyStatus) -> int:
        raise NotImplementedError

    @abstractmethod
    def increment_view_count(self, pharmacy_id: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def delete_pharmacy(self, pharmacy_id: str) -> None:
        """Remove a pharmacy with its duty periods and ratings; feedback keeps no link to it."""
        raise NotImplementedError

    @abstractmethod
    def count_related(self, pharmacy_ids: Sequence[str]) -> dict[str, tuple[int, int]]:
        """Map each pharmacy id to its (ratings, duty periods) totals, unapproved ratings included."""
        raise NotImplementedError

    # Duty periods

    @abstractmethod
    def load_schedule(self, pharmacy_id: str) -> DutySchedule:
        raise NotImplementedError

    def list_duty_periods(self, pharmacy_id: str) -> list[DutyPeriod]:
        return list(self.load_schedule(pharmacy_id).periods)

    @abstractmethod
    def list_all_duty_periods(self) -> list[DutyPeriod]:
        raise NotImplementedError

    @abstractmethod
    def get_duty_period(self, period_id: str) -> DutyPeriod:
        raise NotImplementedError

    @abstractmethod
    def insert_duty_period(
        self,
        pharmacy_id: str,
        start: datetime,
        end: datetime,
        note: Optional[str],
        *,
        expected_version: int,
    ) -> DutyPeriod:
        raise NotImplementedError

    @abstractmethod
    def replace_duty_period(self, period: DutyPeriod, *, expected_version: int) -> DutyPeriod:
        raise NotImplementedError

    @abstractmethod
    def delete_duty_period(self, period_id: str) -> None:
        raise NotImplementedError

    # Ratings

    @abstractmethod
    def list_approved_ratings(self, pharmacy_id: str) -> list[Rating]:
        """Approved ratings, most recent first."""
        raise NotImplementedError

    @abstractmethod
    def upsert_rating(
        self,
        pharmacy_id: str,
        anonymous_id: str,
        score: int,
        comment: Optional[str],
        *,
        approved_on_create: bool,
    ) -> tuple[Rating, bool]:
        """Insert or update the rating keyed on (pharmacy_id, anonymous_id).

        Returns the stored rating and whether it was newly created.
        """
        raise NotImplementedError

    @abstractmethod
    def set_rating_approval(self, rating_id: str, approved: bool) -> Rating:
        raise NotImplementedError

    # Feedback

    @abstractmethod
    def add_feedback(self, feedback: Feedback) -> Feedback:
        raise NotImplementedError

    @abstractmethod
    def list_feedback(self, status: Optional[FeedbackStatus] = None) -> list[Feedback]:
        """Feedback entries, newest first."""
        raise NotImplementedError

    @abstractmethod
    def set_feedback_status(self, feedback_id: str, status: FeedbackStatus) -> Feedback:
        raise NotImplementedError

    def ping(self) -> bool:
        return True
