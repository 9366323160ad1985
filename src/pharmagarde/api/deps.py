"""FastAPI dependencies: repository, clock, services and caller identity."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from ..config import settings
from ..db.supabase import get_supabase_client
from ..errors import PermissionDeniedError
from ..models.domain import Identity, UserRole
from ..persistence.base import PharmacyRepository
from ..persistence.database import SupabaseRepository
from ..persistence.memory import InMemoryRepository
from ..services.clock import Clock
from ..services.duty import DutyService
from ..services.feedback import FeedbackService
from ..services.pharmacies import PharmacyService
from ..services.ratings import RatingService, derive_anonymous_id, resolve_client_ip

logger = logging.getLogger(__name__)


@lru_cache()
def get_repository() -> PharmacyRepository:
    """Build the repository once per process from settings."""

    backend = settings.repository_backend
    if backend == "supabase" or (backend == "auto" and settings.supabase_configured):
        client = get_supabase_client()
        if client is not None:
            logger.info("Using Supabase repository")
            return SupabaseRepository(client)
        if backend == "supabase":
            raise RuntimeError("Supabase backend requested but the client could not be created")
        logger.warning("Supabase client unavailable, falling back to in-memory repository")

    logger.info("Using in-memory repository")
    return InMemoryRepository()


def get_clock() -> Clock:
    return Clock()


def get_pharmacy_service(
    repository: PharmacyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> PharmacyService:
    return PharmacyService(repository, clock)


def get_duty_service(
    repository: PharmacyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> DutyService:
    return DutyService(repository, clock)


def get_rating_service(repository: PharmacyRepository = Depends(get_repository)) -> RatingService:
    return RatingService(repository, require_moderation=settings.ratings_require_moderation)


def get_feedback_service(
    repository: PharmacyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> FeedbackService:
    return FeedbackService(repository, clock)


def current_identity(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Optional[Identity]:
    """Identity forwarded by the upstream identity provider, if any."""

    if not x_user_id:
        return None
    try:
        role = UserRole(x_user_role.strip().upper()) if x_user_role else UserRole.OWNER
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user role.") from exc
    return Identity(user_id=x_user_id, role=role)


def require_identity(identity: Optional[Identity] = Depends(current_identity)) -> Identity:
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required.")
    return identity


def require_admin(identity: Identity = Depends(require_identity)) -> Identity:
    if not identity.is_admin:
        raise PermissionDeniedError("Administrator role required")
    return identity


def anonymous_rater_id(request: Request) -> str:
    peer_host = request.client.host if request.client else None
    client_ip = resolve_client_ip(request.headers, peer_host)
    return derive_anonymous_id(client_ip, settings.anonymous_id_salt)
