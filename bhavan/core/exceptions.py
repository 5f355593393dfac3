"""
Domain Exceptions

Raised by the service layer and translated to JSON responses by the
exception handler registered in ``bhavan.main``.

Taxonomy:
    - ValidationFailed: missing field, empty cart, absent coordinates (400)
    - AuthenticationRequired: missing or invalid bearer credential (401)
    - AccessDenied: caller lacks the admin role (403)
    - NotFound: referenced record does not exist (404)
    - Conflict: duplicate grant, disallowed status transition (409)
"""

from typing import Optional


class BhavanError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 400
    message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        self.message = message or self.message
        self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to the JSON error body."""
        body = {"success": False, "error": self.message}
        if self.code:
            body["code"] = self.code
        return body


class ValidationFailed(BhavanError):
    status_code = 400
    message = "Validation error"


class AuthenticationRequired(BhavanError):
    status_code = 401
    message = "Authentication required"


class AccessDenied(BhavanError):
    status_code = 403
    message = "Unauthorized - Admin access required"


class NotFound(BhavanError):
    status_code = 404
    message = "Resource not found"


class Conflict(BhavanError):
    status_code = 409
    message = "Conflict"
