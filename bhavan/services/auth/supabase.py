"""
Supabase Auth Service

Production implementation: asks the Supabase Auth (GoTrue) API which user
a bearer token belongs to via ``GET /auth/v1/user``.

Requirements:
    - SUPABASE_URL and SUPABASE_ANON_KEY must be set
"""

import logging

import httpx

from bhavan.core.config import get_settings
from bhavan.services.auth.base import AuthResult, BaseAuthService

logger = logging.getLogger(__name__)


class SupabaseAuthService(BaseAuthService):
    """Verifies tokens against the Supabase Auth REST API."""

    def __init__(self):
        settings = get_settings()

        if not settings.supabase_url or not settings.supabase_anon_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_ANON_KEY are required for production mode. "
                "Set them in your .env file or environment variables."
            )

        self._base_url = settings.supabase_url.rstrip("/")
        self._anon_key = settings.supabase_anon_key
        self._timeout = settings.auth_timeout_seconds

        logger.info("SupabaseAuthService initialized")

    @property
    def provider_name(self) -> str:
        return "supabase"

    async def verify_token(self, token: str) -> AuthResult:
        if not token:
            return AuthResult(success=False, error_message="No authorization header")

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    f"{self._base_url}/auth/v1/user",
                    headers={
                        "Authorization": f"Bearer {token}",
                        "apikey": self._anon_key,
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"Supabase auth request failed: {e}")
            return AuthResult(success=False, error_message=str(e))

        if response.status_code != 200:
            logger.warning(f"Supabase rejected token: HTTP {response.status_code}")
            return AuthResult(success=False, error_message="Unauthorized")

        user = response.json()
        metadata = user.get("user_metadata") or {}
        return AuthResult(
            success=True,
            user_id=user.get("id"),
            email=user.get("email"),
            full_name=metadata.get("full_name"),
        )

    async def health_check(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    f"{self._base_url}/auth/v1/health",
                    headers={"apikey": self._anon_key},
                )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Supabase health check failed: {e}")
            return False
