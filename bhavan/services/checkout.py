"""
Checkout Validation

Ordered pre-submission checks shared by the customer client (before any
network call) and the API (before any write). The first failing check
wins; each has its own code and message.

    1. not_authenticated   caller must be signed in
    2. missing_details     name, phone, flat, street, sector, area
    3. location_required   a latitude/longitude pair must be captured
    4. empty_cart          at least one line
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from bhavan.core.exceptions import AuthenticationRequired, BhavanError, ValidationFailed

REQUIRED_FIELDS = (
    "customer_name",
    "customer_phone",
    "flat_no",
    "apartment_street",
    "sector",
    "area",
)


@dataclass(frozen=True)
class CheckoutRejection:
    code: str
    title: str
    message: str

    def to_exception(self) -> BhavanError:
        if self.code == "not_authenticated":
            return AuthenticationRequired(self.message, code=self.code)
        return ValidationFailed(self.message, code=self.code)


NOT_AUTHENTICATED = CheckoutRejection(
    "not_authenticated",
    "Please sign in",
    "You need to be signed in to place an order",
)
MISSING_DETAILS = CheckoutRejection(
    "missing_details",
    "Missing information",
    "Please fill in all address details",
)
LOCATION_REQUIRED = CheckoutRejection(
    "location_required",
    "Location required",
    "Please capture your location for delivery",
)
EMPTY_CART = CheckoutRejection(
    "empty_cart",
    "Cart is empty",
    "Add some items to your cart first",
)


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def find_rejection(
    *,
    authenticated: bool,
    details: dict[str, Any],
    latitude: Optional[float],
    longitude: Optional[float],
    lines: Sequence[Any],
) -> Optional[CheckoutRejection]:
    """Return the first failing check, or None when checkout may proceed."""
    if not authenticated:
        return NOT_AUTHENTICATED
    if any(_blank(details.get(name)) for name in REQUIRED_FIELDS):
        return MISSING_DETAILS
    if latitude is None or longitude is None:
        return LOCATION_REQUIRED
    if not lines:
        return EMPTY_CART
    return None


def validate_checkout(**kwargs) -> None:
    """Raise the exception for the first failing check."""
    rejection = find_rejection(**kwargs)
    if rejection is not None:
        raise rejection.to_exception()
