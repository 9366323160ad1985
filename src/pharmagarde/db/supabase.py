"""Cached Supabase client used by the Supabase repository."""

import logging
from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

from supabase import Client, create_client

from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Optional[Client]:
    """Return the process-wide Supabase client, or None when it cannot be built.

    Creating the client does not contact the server; ``/api/health/database``
    is where connectivity is actually checked.
    """
    if not settings.supabase_configured:
        logger.warning("Supabase credentials not configured (PG_SUPABASE_URL / PG_SUPABASE_KEY)")
        return None

    host = urlparse(settings.supabase_url).netloc or settings.supabase_url
    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client for {host}: {e}")
        return None
    logger.info(f"Supabase client created for {host}")
    return client
