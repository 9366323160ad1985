"""Domain models for pharmacies, duty periods, ratings and feedback."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class PharmacyStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class FeedbackStatus(str, Enum):
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"


class UserRole(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"


@dataclass(slots=True, frozen=True)
class Identity:
    """Caller identity resolved by the upstream identity provider."""

    user_id: str
    role: UserRole = UserRole.OWNER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(slots=True)
class Pharmacy:
    """Represents a listed pharmacy with its coordinates and moderation state."""

    id: str
    name: str
    address: str
    city: str
    phone: str
    latitude: float
    longitude: float
    district: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    opening_hours: Optional[dict] = None
    status: PharmacyStatus = PharmacyStatus.PENDING
    view_count: int = 0
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(slots=True, frozen=True)
class DutyPeriod:
    """A closed interval [start, end] during which a pharmacy is on call."""

    id: str
    pharmacy_id: str
    start: datetime
    end: datetime
    note: Optional[str] = None


@dataclass(slots=True, frozen=True)
class DutySchedule:
    """Snapshot of one pharmacy's duty periods, tagged with a write version."""

    pharmacy_id: str
    version: int
    periods: tuple[DutyPeriod, ...] = ()


@dataclass(slots=True)
class Rating:
    id: str
    pharmacy_id: str
    score: int
    anonymous_id: str
    comment: Optional[str] = None
    approved: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class Feedback:
    id: str
    message: str
    email: Optional[str] = None
    pharmacy_id: Optional[str] = None
    status: FeedbackStatus = FeedbackStatus.PENDING
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class CandidatePharmacy:
    """A pharmacy pre-joined with the duty periods and ratings needed for discovery."""

    pharmacy: Pharmacy
    duty_periods: tuple[DutyPeriod, ...] = ()
    ratings: tuple[Rating, ...] = field(default_factory=tuple)
