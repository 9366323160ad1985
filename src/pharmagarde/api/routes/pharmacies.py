"""Public discovery, registration and profile endpoints."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...config import settings
from ...errors import PermissionDeniedError
from ...models.domain import Identity
from ...schemas.pharmacies import (
    DutyStatusResponse,
    PharmacyCreateRequest,
    PharmacyDetailResponse,
    PharmacyModel,
    PharmacySearchResponse,
    PharmacySummaryModel,
    PharmacyUpdateRequest,
)
from ...services.clock import Clock, localize
from ...services.discovery import SearchCriteria
from ...services.duty import DutyService
from ...services.pharmacies import PharmacyService, can_manage
from ..deps import current_identity, get_clock, get_duty_service, get_pharmacy_service, require_admin, require_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pharmacies", tags=["pharmacies"])


@router.get("", response_model=PharmacySearchResponse, status_code=status.HTTP_200_OK)
def search_pharmacies(
    search: str | None = Query(default=None, description="Substring of name, address or city"),
    city: str | None = Query(default=None, description="Optional city filter"),
    district: str | None = Query(default=None, description="Optional district filter"),
    at: datetime | None = Query(default=None, description="Reference instant for duty status; defaults to now"),
    lat: float | None = Query(default=None, ge=-90, le=90, description="Origin latitude"),
    lng: float | None = Query(default=None, ge=-180, le=180, description="Origin longitude"),
    radius_km: float | None = Query(default=None, gt=0, description="Keep pharmacies within this distance"),
    duty_only: bool = Query(default=False, description="Only pharmacies on duty at the reference instant"),
    sort_by: Literal["distance", "rating", "name"] = Query(default="name"),
    page: int = Query(default=1, description="1-based page index; non-positive values fall back to 1"),
    page_size: int = Query(default=settings.default_page_size, description="Capped at the configured maximum"),
    service: PharmacyService = Depends(get_pharmacy_service),
) -> PharmacySearchResponse:
    criteria = SearchCriteria(
        search=search,
        city=city,
        district=district,
        at=localize(at, settings.tzinfo) if at is not None else None,
        latitude=lat,
        longitude=lng,
        radius_km=radius_km,
        duty_only=duty_only,
        sort_by=sort_by,
        page=page,
        page_size=min(page_size, settings.max_page_size),
    )
    result = service.search(criteria)
    return PharmacySearchResponse(
        items=[PharmacySummaryModel.model_validate(item) for item in result.items],
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        total_pages=result.total_pages,
        has_next_page=result.has_next_page,
    )


@router.post("", response_model=PharmacyModel, status_code=status.HTTP_201_CREATED)
def register_pharmacy(
    payload: PharmacyCreateRequest,
    identity: Identity = Depends(require_identity),
    service: PharmacyService = Depends(get_pharmacy_service),
) -> PharmacyModel:
    pharmacy = service.register(identity.user_id, payload.model_dump())
    return PharmacyModel.model_validate(pharmacy)


@router.get("/{pharmacy_id}", response_model=PharmacyDetailResponse, status_code=status.HTTP_200_OK)
def get_pharmacy(
    pharmacy_id: str,
    identity: Optional[Identity] = Depends(current_identity),
    service: PharmacyService = Depends(get_pharmacy_service),
) -> PharmacyDetailResponse:
    detail = service.get_public(pharmacy_id, identity)
    return PharmacyDetailResponse.model_validate(detail, from_attributes=True)


@router.put("/{pharmacy_id}", response_model=PharmacyModel, status_code=status.HTTP_200_OK)
def update_pharmacy(
    pharmacy_id: str,
    payload: PharmacyUpdateRequest,
    identity: Identity = Depends(require_identity),
    service: PharmacyService = Depends(get_pharmacy_service),
) -> PharmacyModel:
    pharmacy = service.get(pharmacy_id)
    if not can_manage(pharmacy, identity):
        raise PermissionDeniedError("Only the owner or an administrator can edit this pharmacy")
    updated = service.update_profile(pharmacy_id, payload.model_dump(exclude_unset=True))
    logger.info(f"Pharmacy {pharmacy_id} profile updated by {identity.user_id}")
    return PharmacyModel.model_validate(updated)


@router.delete("/{pharmacy_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pharmacy(
    pharmacy_id: str,
    identity: Identity = Depends(require_admin),
    service: PharmacyService = Depends(get_pharmacy_service),
) -> Response:
    service.delete(pharmacy_id)
    logger.info(f"Pharmacy {pharmacy_id} deleted by admin {identity.user_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{pharmacy_id}/duty-status", response_model=DutyStatusResponse, status_code=status.HTTP_200_OK)
def get_duty_status(
    pharmacy_id: str,
    at: datetime | None = Query(default=None, description="Instant to evaluate; defaults to now"),
    service: DutyService = Depends(get_duty_service),
    clock: Clock = Depends(get_clock),
) -> DutyStatusResponse:
    reference = localize(at, settings.tzinfo) if at is not None else clock.now()
    return DutyStatusResponse(
        pharmacy_id=pharmacy_id,
        at=reference,
        is_on_duty=service.get_duty_status(pharmacy_id, reference),
    )
