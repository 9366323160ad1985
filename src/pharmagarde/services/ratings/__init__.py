"""Rating service helpers."""

from .aggregator import RatingSummary, aggregate
from .identity import derive_anonymous_id, resolve_client_ip
from .service import RatingService

__all__ = [
    "RatingService",
    "RatingSummary",
    "aggregate",
    "derive_anonymous_id",
    "resolve_client_ip",
]
