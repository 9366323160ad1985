"""Pydantic request/response models for pharmacy endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..models.domain import PharmacyStatus
from .duty import DutyPeriodModel
from .ratings import RatingModel


class PharmacyCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    address: str = Field(..., min_length=5, max_length=300)
    city: str = Field(..., min_length=2, max_length=120)
    phone: str = Field(..., min_length=8, max_length=40)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    district: Optional[str] = Field(default=None, max_length=120)
    email: Optional[EmailStr] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    opening_hours: Optional[dict] = Field(default=None, description="Free-form weekly opening hours.")

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class PharmacyUpdateRequest(BaseModel):
    """Partial profile update; only fields present in the payload are changed."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    address: Optional[str] = Field(default=None, min_length=5, max_length=300)
    city: Optional[str] = Field(default=None, min_length=2, max_length=120)
    phone: Optional[str] = Field(default=None, min_length=8, max_length=40)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    district: Optional[str] = Field(default=None, max_length=120)
    email: Optional[EmailStr] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    opening_hours: Optional[dict] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class PharmacyModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    address: str
    city: str
    district: Optional[str] = None
    phone: str
    email: Optional[str] = None
    description: Optional[str] = None
    latitude: float
    longitude: float
    opening_hours: Optional[dict] = None
    status: PharmacyStatus
    view_count: int = 0
    created_at: Optional[datetime] = None


class AdminPharmacyModel(PharmacyModel):
    rating_count: int = 0
    duty_period_count: int = 0


class PharmacySummaryModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pharmacy: PharmacyModel
    is_on_duty: bool
    average_rating: float
    rating_count: int
    distance_km: Optional[float] = None


class PharmacySearchResponse(BaseModel):
    items: List[PharmacySummaryModel]
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next_page: bool


class PharmacyDetailResponse(BaseModel):
    summary: PharmacySummaryModel
    recent_ratings: List[RatingModel]
    upcoming_periods: List[DutyPeriodModel]
    current_period: Optional[DutyPeriodModel] = None


class DutyStatusResponse(BaseModel):
    pharmacy_id: str
    at: datetime
    is_on_duty: bool


class ModerationRequest(BaseModel):
    ids: List[str] = Field(..., description="Pharmacies to approve or reject.")
    action: Literal["approve", "reject"]


class ModerationResponse(BaseModel):
    updated: int


class AdminPharmacyListResponse(BaseModel):
    items: List[AdminPharmacyModel]
    page: int
    page_size: int
    total: int
    status_counts: dict[str, int]
