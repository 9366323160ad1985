"""Administrator moderation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status

from ...config import settings
from ...models.domain import FeedbackStatus, Identity, PharmacyStatus
from ...schemas.feedback import FeedbackListResponse, FeedbackModel, FeedbackStatusRequest
from ...schemas.pharmacies import (
    AdminPharmacyListResponse,
    AdminPharmacyModel,
    ModerationRequest,
    ModerationResponse,
    PharmacyModel,
)
from ...schemas.ratings import RatingApprovalRequest, RatingModel
from ...services.feedback import FeedbackService
from ...services.pharmacies import PharmacyService
from ...services.ratings import RatingService
from ..deps import get_feedback_service, get_pharmacy_service, get_rating_service, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/pharmacies", response_model=AdminPharmacyListResponse, status_code=status.HTTP_200_OK)
def list_pharmacies(
    status_filter: PharmacyStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, description="Substring of name, city or email"),
    page: int = Query(default=1),
    page_size: int = Query(default=settings.default_page_size),
    service: PharmacyService = Depends(get_pharmacy_service),
) -> AdminPharmacyListResponse:
    listing = service.admin_list(
        status=status_filter,
        search_term=search,
        page=page,
        page_size=min(page_size, settings.max_page_size),
    )
    return AdminPharmacyListResponse(
        items=[
            AdminPharmacyModel(
                **PharmacyModel.model_validate(entry.pharmacy).model_dump(),
                rating_count=entry.rating_count,
                duty_period_count=entry.duty_period_count,
            )
            for entry in listing.items
        ],
        page=listing.page,
        page_size=listing.page_size,
        total=listing.total,
        status_counts=listing.status_counts,
    )


@router.patch("/pharmacies", response_model=ModerationResponse, status_code=status.HTTP_200_OK)
def moderate_pharmacies(
    payload: ModerationRequest,
    identity: Identity = Depends(require_admin),
    service: PharmacyService = Depends(get_pharmacy_service),
) -> ModerationResponse:
    updated = service.moderate(payload.ids, payload.action)
    logger.info(f"Admin {identity.user_id} applied '{payload.action}' to {updated} pharmacies")
    return ModerationResponse(updated=updated)


@router.patch("/ratings/{rating_id}", response_model=RatingModel, status_code=status.HTTP_200_OK)
def set_rating_approval(
    rating_id: str,
    payload: RatingApprovalRequest,
    service: RatingService = Depends(get_rating_service),
) -> RatingModel:
    return RatingModel.model_validate(service.set_approval(rating_id, payload.approved))


@router.get("/feedbacks", response_model=FeedbackListResponse, status_code=status.HTTP_200_OK)
def list_feedback(
    status_filter: FeedbackStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1),
    page_size: int = Query(default=settings.default_page_size),
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackListResponse:
    result = service.list_feedback(status_filter, page, min(page_size, settings.max_page_size))
    return FeedbackListResponse(
        items=[FeedbackModel.model_validate(entry) for entry in result.items],
        page=result.page,
        page_size=result.page_size,
        total=result.total,
    )


@router.patch("/feedbacks/{feedback_id}", response_model=FeedbackModel, status_code=status.HTTP_200_OK)
def set_feedback_status(
    feedback_id: str,
    payload: FeedbackStatusRequest,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackModel:
    return FeedbackModel.model_validate(service.set_status(feedback_id, payload.status))
