"""Duty period listing and scheduling endpoints."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status

from ...config import settings
from ...errors import PermissionDeniedError
from ...models.domain import Identity
from ...schemas.duty import (
    DutyPeriodCreateRequest,
    DutyPeriodListResponse,
    DutyPeriodModel,
    DutyPeriodUpdateRequest,
)
from ...services.clock import localize
from ...services.duty import DutyService
from ...services.pharmacies import PharmacyService, can_manage
from ..deps import get_duty_service, get_pharmacy_service, require_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/duty-periods", tags=["duty"])


def _authorize(pharmacy_id: str, identity: Identity, pharmacies: PharmacyService) -> None:
    if not can_manage(pharmacies.get(pharmacy_id), identity):
        raise PermissionDeniedError("Only the owner or an administrator can manage this duty schedule")


@router.get("", response_model=DutyPeriodListResponse, status_code=status.HTTP_200_OK)
def list_duty_periods(
    pharmacy_id: str | None = Query(default=None, description="Optional pharmacy filter"),
    date: datetime | None = Query(default=None, description="Only periods covering this instant"),
    upcoming: bool = Query(default=False, description="Only periods that have not ended yet"),
    service: DutyService = Depends(get_duty_service),
) -> DutyPeriodListResponse:
    at = localize(date, settings.tzinfo) if date is not None else None
    periods = service.list_duty_periods(pharmacy_id, at=at, upcoming=upcoming)
    return DutyPeriodListResponse(
        items=[DutyPeriodModel.model_validate(period) for period in periods],
        total=len(periods),
    )


@router.post("", response_model=DutyPeriodModel, status_code=status.HTTP_201_CREATED)
def schedule_duty_period(
    payload: DutyPeriodCreateRequest,
    identity: Identity = Depends(require_identity),
    service: DutyService = Depends(get_duty_service),
    pharmacies: PharmacyService = Depends(get_pharmacy_service),
) -> DutyPeriodModel:
    _authorize(payload.pharmacy_id, identity, pharmacies)
    period = service.schedule_duty(payload.pharmacy_id, payload.start, payload.end, payload.note)
    logger.info(f"Scheduled duty period {period.id} for pharmacy {period.pharmacy_id}")
    return DutyPeriodModel.model_validate(period)


@router.put("/{period_id}", response_model=DutyPeriodModel, status_code=status.HTTP_200_OK)
def reschedule_duty_period(
    period_id: str,
    payload: DutyPeriodUpdateRequest,
    identity: Identity = Depends(require_identity),
    service: DutyService = Depends(get_duty_service),
    pharmacies: PharmacyService = Depends(get_pharmacy_service),
) -> DutyPeriodModel:
    existing = service.get_period(period_id)
    _authorize(existing.pharmacy_id, identity, pharmacies)
    period = service.reschedule_duty(period_id, payload.start, payload.end, payload.note)
    logger.info(f"Rescheduled duty period {period_id}")
    return DutyPeriodModel.model_validate(period)


@router.delete("/{period_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_duty_period(
    period_id: str,
    identity: Identity = Depends(require_identity),
    service: DutyService = Depends(get_duty_service),
    pharmacies: PharmacyService = Depends(get_pharmacy_service),
) -> Response:
    existing = service.get_period(period_id)
    _authorize(existing.pharmacy_id, identity, pharmacies)
    service.cancel_duty(period_id)
    logger.info(f"Cancelled duty period {period_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
