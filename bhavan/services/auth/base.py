"""
Auth Service Abstract Base Class

Defines the interface for verifying bearer credentials issued by the
identity provider. The API never issues tokens itself; it only asks the
provider who a token belongs to.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class AuthResult:
    """
    Result from verifying a bearer token.

    Attributes:
        success: Whether the token identifies a user
        user_id: Provider user id (matches ``profiles.id``)
        email: Email registered with the provider
        full_name: Display name from the provider's user metadata
        error_message: Reason the token was rejected
    """
    success: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    error_message: Optional[str] = None


class BaseAuthService(ABC):
    """Abstract base class for identity verification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def verify_token(self, token: str) -> AuthResult:
        """
        Resolve a bearer token to a user.

        Args:
            token: Raw bearer token (without the ``Bearer`` prefix)

        Returns:
            AuthResult: ``success=False`` for missing, expired or forged tokens
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check provider connectivity."""
        pass
