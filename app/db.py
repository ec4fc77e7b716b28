# backend/app/db.py
import logging
from typing import Optional

from app.config import get_settings
from app.services.supabase_service import SupabaseService

logger = logging.getLogger(__name__)

_backend: Optional[SupabaseService] = None


def get_backend() -> Optional[SupabaseService]:
    """
    Returns a singleton SupabaseService, or None when the backend URL/key
    are not configured. Callers must treat None as "not configured".
    """
    global _backend
    if _backend is None:
        settings = get_settings()
        if not settings.backend_configured:
            logger.warning("Backend URL or anon key missing; running without a backend")
            return None
        _backend = SupabaseService(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.backend_timeout_seconds,
        )
    return _backend


async def close_backend() -> None:
    """
    Close the HTTP client - call this on application shutdown.
    """
    global _backend
    if _backend is not None:
        await _backend.aclose()
        _backend = None
