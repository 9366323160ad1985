"""Pydantic request/response models for feedback endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..models.domain import FeedbackStatus


class FeedbackRequest(BaseModel):
    message: str = Field(..., description="Between 10 and 1000 characters once trimmed.")
    email: Optional[EmailStr] = None
    pharmacy_id: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class FeedbackModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    message: str
    email: Optional[str] = None
    pharmacy_id: Optional[str] = None
    status: FeedbackStatus
    created_at: Optional[datetime] = None


class FeedbackListResponse(BaseModel):
    items: List[FeedbackModel]
    page: int
    page_size: int
    total: int


class FeedbackStatusRequest(BaseModel):
    status: FeedbackStatus
