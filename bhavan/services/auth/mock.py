"""
Mock Auth Service

Development stand-in for the identity provider. Tokens have the form
``dev-<user_id>`` (optionally ``dev-<user_id>:<email>``), so local tools
can act as any user without a provider account.
"""

import logging
import uuid
from typing import Optional

from bhavan.services.auth.base import AuthResult, BaseAuthService

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "dev-"


def make_dev_token(user_id: str, email: Optional[str] = None) -> str:
    """Build a development bearer token for ``user_id``."""
    token = f"{TOKEN_PREFIX}{user_id}"
    return f"{token}:{email}" if email else token


class MockAuthService(BaseAuthService):
    """Accepts ``dev-`` tokens carrying a UUID user id."""

    def __init__(self):
        logger.info("MockAuthService initialized (dev tokens accepted)")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def verify_token(self, token: str) -> AuthResult:
        if not token or not token.startswith(TOKEN_PREFIX):
            return AuthResult(success=False, error_message="Unauthorized")

        user_id, _, email = token[len(TOKEN_PREFIX):].partition(":")
        try:
            uuid.UUID(user_id)
        except ValueError:
            logger.debug(f"Mock: rejected malformed dev token {token!r}")
            return AuthResult(success=False, error_message="Unauthorized")

        return AuthResult(success=True, user_id=user_id, email=email or None)

    async def health_check(self) -> bool:
        return True
