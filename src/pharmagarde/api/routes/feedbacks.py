"""Public feedback submission."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.feedback import FeedbackModel, FeedbackRequest
from ...services.feedback import FeedbackService
from ..deps import get_feedback_service

router = APIRouter(prefix="/feedbacks", tags=["feedback"])


@router.post("", response_model=FeedbackModel, status_code=status.HTTP_201_CREATED)
def submit_feedback(
    payload: FeedbackRequest,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackModel:
    feedback = service.submit(payload.message, payload.email, payload.pharmacy_id)
    return FeedbackModel.model_validate(feedback)
