"""Anonymous rating submission."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ...schemas.ratings import RatingModel, RatingRequest, RatingSubmissionResponse
from ...services.ratings import RatingService
from ..deps import anonymous_rater_id, get_rating_service

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post("", response_model=RatingSubmissionResponse, status_code=status.HTTP_201_CREATED)
def submit_rating(
    payload: RatingRequest,
    response: Response,
    anonymous_id: str = Depends(anonymous_rater_id),
    service: RatingService = Depends(get_rating_service),
) -> RatingSubmissionResponse:
    """Create a rating, or replace the one this client already left for the pharmacy."""
    rating, created = service.rate_score(payload.pharmacy_id, anonymous_id, payload.score, payload.comment)
    if not created:
        response.status_code = status.HTTP_200_OK
    return RatingSubmissionResponse(rating=RatingModel.model_validate(rating), created=created)
