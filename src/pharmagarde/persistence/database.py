"""Supabase-backed repository for pharmacies, duty periods, ratings and feedback.

Duty-period writes and rating upserts go through the PostgreSQL functions in
``supabase/migrations``; each runs the version check, the write and the
exclusion-constraint check inside one transaction.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Optional, Sequence

from postgrest.exceptions import APIError
from supabase import Client

from ..errors import ConcurrencyConflict, NotFoundError, OverlapError, ValidationError
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
from .base import PharmacyRepository

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes raised by the migration's functions and constraints
EXCLUSION_VIOLATION = "23P01"
SERIALIZATION_FAILURE = "40001"
NO_DATA_FOUND = "P0002"
CHECK_VIOLATION = "23514"

PROFILE_COLUMNS = (
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
)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _single(data: Any) -> dict:
    """RPC payloads arrive either as a bare object or as a one-row list."""
    if isinstance(data, list):
        if not data:
            raise ValueError("Expected one row from Supabase, got none")
        return data[0]
    return data


def _row_to_pharmacy(row: dict) -> Pharmacy:
    return Pharmacy(
        id=str(row["id"]),
        name=row["name"],
        address=row["address"],
        city=row["city"],
        phone=row["phone"],
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        district=row.get("district"),
        email=row.get("email"),
        description=row.get("description"),
        opening_hours=row.get("opening_hours"),
        status=PharmacyStatus(row.get("status") or PharmacyStatus.PENDING.value),
        view_count=int(row.get("view_count") or 0),
        owner_id=row.get("owner_id"),
        created_at=_parse_timestamp(row.get("created_at")),
    )


def _row_to_period(row: dict) -> DutyPeriod:
    return DutyPeriod(
        id=str(row["id"]),
        pharmacy_id=str(row["pharmacy_id"]),
        start=_parse_timestamp(row["start_at"]),
        end=_parse_timestamp(row["end_at"]),
        note=row.get("note"),
    )


def _row_to_rating(row: dict) -> Rating:
    return Rating(
        id=str(row["id"]),
        pharmacy_id=str(row["pharmacy_id"]),
        score=int(row["score"]),
        anonymous_id=row["anonymous_id"],
        comment=row.get("comment"),
        approved=bool(row.get("approved")),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def _row_to_feedback(row: dict) -> Feedback:
    return Feedback(
        id=str(row["id"]),
        message=row["message"],
        email=row.get("email"),
        pharmacy_id=str(row["pharmacy_id"]) if row.get("pharmacy_id") else None,
        status=FeedbackStatus(row.get("status") or FeedbackStatus.PENDING.value),
        created_at=_parse_timestamp(row.get("created_at")),
    )


def _translate_error(exc: APIError, *, pharmacy_id: str, entity: str, identifier: str) -> Optional[Exception]:
    code = getattr(exc, "code", None)
    if code == EXCLUSION_VIOLATION:
        return OverlapError(pharmacy_id)
    if code == SERIALIZATION_FAILURE:
        return ConcurrencyConflict(pharmacy_id)
    if code == NO_DATA_FOUND:
        return NotFoundError(entity, identifier)
    if code == CHECK_VIOLATION:
        return ValidationError(getattr(exc, "message", None) or "Check constraint violated")
    return None


class SupabaseRepository(PharmacyRepository):
    backend = "supabase"

    def __init__(self, client: Client) -> None:
        self._client = client

    def _rpc(self, name: str, params: dict[str, Any], *, pharmacy_id: str, entity: str, identifier: str) -> Any:
        try:
            return self._client.rpc(name, params).execute().data
        except APIError as exc:
            translated = _translate_error(exc, pharmacy_id=pharmacy_id, entity=entity, identifier=identifier)
            if translated is None:
                logger.error(f"Supabase RPC {name} failed: {exc}")
                raise
            raise translated from exc

    # Pharmacies

    def get_pharmacy(self, pharmacy_id: str) -> Pharmacy:
        response = self._client.table("pharmacies").select("*").eq("id", pharmacy_id).limit(1).execute()
        rows = response.data or []
        if not rows:
            raise NotFoundError("Pharmacy", pharmacy_id)
        return _row_to_pharmacy(rows[0])

    def find_pharmacy_by_owner(self, owner_id: str) -> Optional[Pharmacy]:
        response = self._client.table("pharmacies").select("*").eq("owner_id", owner_id).limit(1).execute()
        rows = response.data or []
        return _row_to_pharmacy(rows[0]) if rows else None

    def list_pharmacies(self, status: Optional[PharmacyStatus] = None) -> list[Pharmacy]:
        query = self._client.table("pharmacies").select("*")
        if status is not None:
            query = query.eq("status", status.value)
        response = query.order("created_at", desc=True).execute()
        return [_row_to_pharmacy(row) for row in (response.data or [])]

    def list_candidates(self, status: PharmacyStatus = PharmacyStatus.APPROVED) -> list[CandidatePharmacy]:
        response = (
            self._client.table("pharmacies")
            .select("*, duty_periods(*), ratings(*)")
            .eq("status", status.value)
            .eq("ratings.approved", True)
            .execute()
        )
        candidates: list[CandidatePharmacy] = []
        for row in response.data or []:
            candidates.append(
                CandidatePharmacy(
                    pharmacy=_row_to_pharmacy(row),
                    duty_periods=tuple(_row_to_period(item) for item in row.get("duty_periods") or []),
                    ratings=tuple(_row_to_rating(item) for item in row.get("ratings") or []),
                )
            )
        logger.debug(f"Loaded {len(candidates)} candidate pharmacies from Supabase")
        return candidates

    def add_pharmacy(self, pharmacy: Pharmacy) -> Pharmacy:
        row = {column: getattr(pharmacy, column) for column in PROFILE_COLUMNS}
        row.update(
            {
                "id": pharmacy.id,
                "status": pharmacy.status.value,
                "view_count": pharmacy.view_count,
                "owner_id": pharmacy.owner_id,
            }
        )
        if pharmacy.created_at is not None:
            row["created_at"] = pharmacy.created_at.isoformat()
        response = self._client.table("pharmacies").insert(row).execute()
        return _row_to_pharmacy(_single(response.data))

    def update_pharmacy(self, pharmacy_id: str, changes: dict[str, Any]) -> Pharmacy:
        row = {key: value for key, value in changes.items() if key in PROFILE_COLUMNS}
        if not row:
            return self.get_pharmacy(pharmacy_id)
        response = self._client.table("pharmacies").update(row).eq("id", pharmacy_id).execute()
        rows = response.data or []
        if not rows:
            raise NotFoundError("Pharmacy", pharmacy_id)
        return _row_to_pharmacy(rows[0])

    def set_pharmacy_status(self, pharmacy_ids: Sequence[str], status: PharmacyStatus) -> int:
        response = (
            self._client.table("pharmacies")
            .update({"status": status.value})
            .in_("id", list(pharmacy_ids))
            .execute()
        )
        return len(response.data or [])

    def increment_view_count(self, pharmacy_id: str) -> int:
        data = self._rpc(
            "increment_view_count",
            {"p_pharmacy_id": pharmacy_id},
            pharmacy_id=pharmacy_id,
            entity="Pharmacy",
            identifier=pharmacy_id,
        )
        return int(data)

    def delete_pharmacy(self, pharmacy_id: str) -> None:
        # duty periods and ratings cascade, feedback links are nulled by the foreign keys
        response = self._client.table("pharmacies").delete().eq("id", pharmacy_id).execute()
        if not response.data:
            raise NotFoundError("Pharmacy", pharmacy_id)
        logger.info(f"Deleted pharmacy {pharmacy_id} from Supabase")

    def count_related(self, pharmacy_ids: Sequence[str]) -> dict[str, tuple[int, int]]:
        ids = list(pharmacy_ids)
        if not ids:
            return {}
        ratings = self._client.table("ratings").select("pharmacy_id").in_("pharmacy_id", ids).execute()
        periods = self._client.table("duty_periods").select("pharmacy_id").in_("pharmacy_id", ids).execute()
        rating_counts = Counter(str(row["pharmacy_id"]) for row in (ratings.data or []))
        period_counts = Counter(str(row["pharmacy_id"]) for row in (periods.data or []))
        return {pharmacy_id: (rating_counts[pharmacy_id], period_counts[pharmacy_id]) for pharmacy_id in ids}

    # Duty periods

    def load_schedule(self, pharmacy_id: str) -> DutySchedule:
        response = (
            self._client.table("pharmacies")
            .select("id, schedule_version, duty_periods(*)")
            .eq("id", pharmacy_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        if not rows:
            raise NotFoundError("Pharmacy", pharmacy_id)
        row = rows[0]
        periods = sorted((_row_to_period(item) for item in row.get("duty_periods") or []), key=lambda p: p.start)
        return DutySchedule(
            pharmacy_id=pharmacy_id,
            version=int(row.get("schedule_version") or 0),
            periods=tuple(periods),
        )

    def list_all_duty_periods(self) -> list[DutyPeriod]:
        response = self._client.table("duty_periods").select("*").order("start_at").execute()
        return [_row_to_period(row) for row in (response.data or [])]

    def get_duty_period(self, period_id: str) -> DutyPeriod:
        response = self._client.table("duty_periods").select("*").eq("id", period_id).limit(1).execute()
        rows = response.data or []
        if not rows:
            raise NotFoundError("DutyPeriod", period_id)
        return _row_to_period(rows[0])

    def insert_duty_period(
        self,
        pharmacy_id: str,
        start: datetime,
        end: datetime,
        note: Optional[str],
        *,
        expected_version: int,
    ) -> DutyPeriod:
        params = {
            "p_pharmacy_id": pharmacy_id,
            "p_start": start.isoformat(),
            "p_end": end.isoformat(),
            "p_note": note,
            "p_expected_version": expected_version,
        }
        data = self._rpc(
            "schedule_duty_period", params, pharmacy_id=pharmacy_id, entity="Pharmacy", identifier=pharmacy_id
        )
        return _row_to_period(_single(data))

    def replace_duty_period(self, period: DutyPeriod, *, expected_version: int) -> DutyPeriod:
        params = {
            "p_period_id": period.id,
            "p_start": period.start.isoformat(),
            "p_end": period.end.isoformat(),
            "p_note": period.note,
            "p_expected_version": expected_version,
        }
        data = self._rpc(
            "reschedule_duty_period",
            params,
            pharmacy_id=period.pharmacy_id,
            entity="DutyPeriod",
            identifier=period.id,
        )
        return _row_to_period(_single(data))

    def delete_duty_period(self, period_id: str) -> None:
        response = self._client.table("duty_periods").delete().eq("id", period_id).execute()
        if not response.data:
            raise NotFoundError("DutyPeriod", period_id)

    # Ratings

    def list_approved_ratings(self, pharmacy_id: str) -> list[Rating]:
        response = (
            self._client.table("ratings")
            .select("*")
            .eq("pharmacy_id", pharmacy_id)
            .eq("approved", True)
            .order("created_at", desc=True)
            .execute()
        )
        return [_row_to_rating(row) for row in (response.data or [])]

    def upsert_rating(
        self,
        pharmacy_id: str,
        anonymous_id: str,
        score: int,
        comment: Optional[str],
        *,
        approved_on_create: bool,
    ) -> tuple[Rating, bool]:
        params = {
            "p_pharmacy_id": pharmacy_id,
            "p_anonymous_id": anonymous_id,
            "p_score": score,
            "p_comment": comment,
            "p_approved": approved_on_create,
        }
        data = self._rpc("upsert_rating", params, pharmacy_id=pharmacy_id, entity="Pharmacy", identifier=pharmacy_id)
        row = _single(data)
        return _row_to_rating(row), bool(row.get("created"))

    def set_rating_approval(self, rating_id: str, approved: bool) -> Rating:
        response = self._client.table("ratings").update({"approved": approved}).eq("id", rating_id).execute()
        rows = response.data or []
        if not rows:
            raise NotFoundError("Rating", rating_id)
        return _row_to_rating(rows[0])

    # Feedback

    def add_feedback(self, feedback: Feedback) -> Feedback:
        row = {
            "id": feedback.id,
            "message": feedback.message,
            "email": feedback.email,
            "pharmacy_id": feedback.pharmacy_id,
            "status": feedback.status.value,
        }
        if feedback.created_at is not None:
            row["created_at"] = feedback.created_at.isoformat()
        response = self._client.table("feedbacks").insert(row).execute()
        return _row_to_feedback(_single(response.data))

    def list_feedback(self, status: Optional[FeedbackStatus] = None) -> list[Feedback]:
        query = self._client.table("feedbacks").select("*")
        if status is not None:
            query = query.eq("status", status.value)
        response = query.order("created_at", desc=True).execute()
        return [_row_to_feedback(row) for row in (response.data or [])]

    def set_feedback_status(self, feedback_id: str, status: FeedbackStatus) -> Feedback:
        response = self._client.table("feedbacks").update({"status": status.value}).eq("id", feedback_id).execute()
        rows = response.data or []
        if not rows:
            raise NotFoundError("Feedback", feedback_id)
        return _row_to_feedback(rows[0])

    def ping(self) -> bool:
        self._client.table("pharmacies").select("id", count="exact").limit(1).execute()
        return True
