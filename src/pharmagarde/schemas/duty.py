"""Pydantic request/response models for duty period endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import settings
from ..services.clock import localize


class DutyPeriodCreateRequest(BaseModel):
    pharmacy_id: str
    start: datetime = Field(..., description="Start instant; naive values are read in the configured timezone.")
    end: datetime = Field(..., description="End instant, inclusive.")
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("start", "end")
    @classmethod
    def localize_naive(cls, value: datetime) -> datetime:
        return localize(value, settings.tzinfo)


class DutyPeriodUpdateRequest(BaseModel):
    start: datetime
    end: datetime
    note: Optional[str] = Field(default=None, max_length=500, description="Omit to keep the current note.")

    @field_validator("start", "end")
    @classmethod
    def localize_naive(cls, value: datetime) -> datetime:
        return localize(value, settings.tzinfo)


class DutyPeriodModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    pharmacy_id: str
    start: datetime
    end: datetime
    note: Optional[str] = None


class DutyPeriodListResponse(BaseModel):
    items: List[DutyPeriodModel]
    total: int
