"""Pydantic request/response models for rating endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RatingRequest(BaseModel):
    pharmacy_id: str
    score: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=500)


class RatingModel(BaseModel):
    """Public view of a rating; the rater's anonymous id is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    pharmacy_id: str
    score: int
    comment: Optional[str] = None
    approved: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RatingSubmissionResponse(BaseModel):
    rating: RatingModel
    created: bool


class RatingApprovalRequest(BaseModel):
    approved: bool
