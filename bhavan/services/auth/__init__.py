"""
Auth Service Factory

Returns MockAuthService in development and SupabaseAuthService otherwise.

Usage:
    from bhavan.services.auth import get_auth_service

    result = await get_auth_service().verify_token(token)
"""

import logging
from functools import lru_cache

from bhavan.core.config import get_settings
from bhavan.services.auth.base import AuthResult, BaseAuthService
from bhavan.services.auth.mock import MockAuthService, make_dev_token
from bhavan.services.auth.supabase import SupabaseAuthService

logger = logging.getLogger(__name__)


@lru_cache()
def get_auth_service() -> BaseAuthService:
    """Get the configured auth service instance."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Auth Service: Using MockAuthService (development mode)")
        return MockAuthService()
    else:
        logger.info(f"Auth Service: Using SupabaseAuthService ({settings.env_mode.value} mode)")
        return SupabaseAuthService()


def reset_auth_service() -> None:
    """Clear the cached service instance."""
    get_auth_service.cache_clear()


__all__ = [
    "get_auth_service",
    "reset_auth_service",
    "make_dev_token",
    "BaseAuthService",
    "AuthResult",
    "MockAuthService",
    "SupabaseAuthService",
]
