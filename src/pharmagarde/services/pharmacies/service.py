"""Pharmacy registration, lookup, discovery and moderation."""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional

from ...errors import ConflictError, NotFoundError, ValidationError
from ...models.domain import DutyPeriod, Identity, Pharmacy, PharmacyStatus, Rating
from ...persistence.base import PharmacyRepository
from ..clock import Clock
from ..discovery.engine import AnnotatedPharmacy, SearchCriteria, SearchPage, normalize_paging, search
from ..duty.evaluator import active_period, is_on_duty, upcoming_periods
from ..geospatial import validate_coordinate
from ..ratings.aggregator import aggregate

logger = logging.getLogger(__name__)

RECENT_RATINGS_LIMIT = 10
PROFILE_FIELDS = frozenset(
    {
        "name",
        "address",
        "city",
        "district",
        "phone",
        "email",
        "description",
        "latitude",
        "longitude",
        "opening_hours",
    }
)

REQUIRED_FIELDS = frozenset({"name", "address", "city", "phone", "latitude", "longitude"})

ModerationAction = Literal["approve", "reject"]


@dataclass(slots=True)
class PharmacyDetail:
    summary: AnnotatedPharmacy
    recent_ratings: list[Rating]
    upcoming_periods: list[DutyPeriod]
    current_period: Optional[DutyPeriod] = None


@dataclass(slots=True)
class AdminPharmacy:
    pharmacy: Pharmacy
    rating_count: int = 0
    duty_period_count: int = 0


@dataclass(slots=True)
class AdminListing:
    items: list[AdminPharmacy]
    page: int
    page_size: int
    total: int
    status_counts: dict[str, int] = field(default_factory=dict)


class PharmacyService:
    def __init__(self, repository: PharmacyRepository, clock: Optional[Clock] = None) -> None:
        self._repository = repository
        self._clock = clock or Clock()

    def search(self, criteria: SearchCriteria) -> SearchPage:
        reference = criteria.at if criteria.at is not None else self._clock.now()
        candidates = self._repository.list_candidates(PharmacyStatus.APPROVED)
        return search(candidates, criteria, reference)

    def register(self, owner_id: str, data: dict[str, Any]) -> Pharmacy:
        if self._repository.find_pharmacy_by_owner(owner_id) is not None:
            raise ConflictError("Owner already has a registered pharmacy")
        validate_coordinate(data["latitude"], data["longitude"])

        pharmacy = Pharmacy(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            status=PharmacyStatus.PENDING,
            view_count=0,
            created_at=self._clock.now(),
            **{key: value for key, value in data.items() if key in PROFILE_FIELDS},
        )
        stored = self._repository.add_pharmacy(pharmacy)
        logger.info(f"Registered pharmacy {stored.id} for owner {owner_id}, awaiting approval")
        return stored

    def get(self, pharmacy_id: str) -> Pharmacy:
        return self._repository.get_pharmacy(pharmacy_id)

    def get_public(self, pharmacy_id: str, viewer: Optional[Identity] = None) -> PharmacyDetail:
        """Detail view; unapproved listings are hidden from everyone but their owner and admins."""

        pharmacy = self._repository.get_pharmacy(pharmacy_id)
        if pharmacy.status != PharmacyStatus.APPROVED and not can_manage(pharmacy, viewer):
            raise NotFoundError("Pharmacy", pharmacy_id)

        pharmacy.view_count = self._repository.increment_view_count(pharmacy_id)

        now = self._clock.now()
        periods = self._repository.list_duty_periods(pharmacy_id)
        ratings = self._repository.list_approved_ratings(pharmacy_id)
        summary = aggregate(ratings)
        return PharmacyDetail(
            summary=AnnotatedPharmacy(
                pharmacy=pharmacy,
                is_on_duty=is_on_duty(periods, now),
                average_rating=summary.average,
                rating_count=summary.count,
                distance_km=None,
            ),
            recent_ratings=ratings[:RECENT_RATINGS_LIMIT],
            upcoming_periods=upcoming_periods(periods, now),
            current_period=active_period(periods, now),
        )

    def update_profile(self, pharmacy_id: str, changes: dict[str, Any]) -> Pharmacy:
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        cleared = sorted(key for key in REQUIRED_FIELDS if key in changes and changes[key] is None)
        if cleared:
            raise ValidationError(f"Fields cannot be cleared: {', '.join(cleared)}", field=cleared[0])

        current = self._repository.get_pharmacy(pharmacy_id)
        latitude = changes.get("latitude", current.latitude)
        longitude = changes.get("longitude", current.longitude)
        validate_coordinate(latitude, longitude)
        return self._repository.update_pharmacy(pharmacy_id, changes)

    def moderate(self, pharmacy_ids: list[str], action: ModerationAction) -> int:
        if not pharmacy_ids:
            raise ValidationError("No pharmacy selected", field="ids")
        if action == "approve":
            status = PharmacyStatus.APPROVED
        elif action == "reject":
            status = PharmacyStatus.REJECTED
        else:
            raise ValidationError(f"Unknown moderation action '{action}'", field="action")

        changed = self._repository.set_pharmacy_status(pharmacy_ids, status)
        logger.info(f"Moderation set {changed} pharmacies to {status.value}")
        return changed

    def delete(self, pharmacy_id: str) -> None:
        self._repository.delete_pharmacy(pharmacy_id)
        logger.info(f"Deleted pharmacy {pharmacy_id}")

    def admin_list(
        self,
        *,
        status: Optional[PharmacyStatus] = None,
        search_term: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> AdminListing:
        everything = self._repository.list_pharmacies()
        status_counts = Counter(pharmacy.status.value for pharmacy in everything)

        selected = [pharmacy for pharmacy in everything if status is None or pharmacy.status == status]
        if search_term:
            needle = search_term.casefold()
            selected = [
                pharmacy
                for pharmacy in selected
                if any(value and needle in value.casefold() for value in (pharmacy.name, pharmacy.city, pharmacy.email))
            ]
        selected.sort(key=_created_sort_key, reverse=True)

        page, page_size = normalize_paging(page, page_size)
        skip = (page - 1) * page_size
        window = selected[skip : skip + page_size]
        counts = self._repository.count_related([pharmacy.id for pharmacy in window])
        return AdminListing(
            items=[AdminPharmacy(pharmacy, *counts.get(pharmacy.id, (0, 0))) for pharmacy in window],
            page=page,
            page_size=page_size,
            total=len(selected),
            status_counts=dict(status_counts),
        )


def can_manage(pharmacy: Pharmacy, viewer: Optional[Identity]) -> bool:
    if viewer is None:
        return False
    return viewer.is_admin or (pharmacy.owner_id is not None and pharmacy.owner_id == viewer.user_id)


def _created_sort_key(pharmacy: Pharmacy) -> float:
    created: Optional[datetime] = pharmacy.created_at
    return created.timestamp() if created is not None else float("-inf")
