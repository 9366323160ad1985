"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...config import settings
from ...persistence.base import PharmacyRepository
from ..deps import get_repository

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database(repository: PharmacyRepository = Depends(get_repository)) -> dict:
    """Check which repository backend is active and whether it answers."""
    if repository.backend == "memory":
        return {
            "backend": repository.backend,
            "configured": settings.supabase_configured,
            "connected": True,
            "message": "Using in-memory storage. Set PG_SUPABASE_URL and PG_SUPABASE_KEY to persist data.",
        }

    try:
        repository.ping()
        return {
            "backend": repository.backend,
            "configured": True,
            "connected": True,
            "message": "Database connected.",
        }
    except Exception as exc:
        return {
            "backend": repository.backend,
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
