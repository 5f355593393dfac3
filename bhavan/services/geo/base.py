"""
Geo Service Abstract Base Class

Checkout needs a latitude/longitude pair for the delivery address. A geo
service turns the four address parts into that pair with one lookup; there
is no retry and nothing is cached.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DeliveryAddress:
    """The four address parts collected at checkout."""
    flat_no: str = ""
    apartment_street: str = ""
    sector: str = ""
    area: str = ""

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple((p or "").strip() for p in (self.flat_no, self.apartment_street, self.sector, self.area))

    @property
    def is_complete(self) -> bool:
        return all(self.parts)

    @property
    def query(self) -> str:
        """Single-line address sent to the geocoder."""
        return ", ".join(p for p in self.parts if p)


@dataclass
class LocationFix:
    """
    Outcome of one location capture.

    Attributes:
        success: Whether coordinates were obtained
        latitude / longitude: The captured pair, unset on failure
        formatted_address: Provider's normalised address
        error_code: Machine-readable reason (incomplete_address,
            address_not_found, timeout, api_error, transport_error,
            service_unavailable)
        error_message: Customer-facing message
    """
    success: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    formatted_address: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def failed(cls, code: str, message: str) -> "LocationFix":
        return cls(success=False, error_code=code, error_message=message)


INCOMPLETE_ADDRESS = LocationFix.failed("incomplete_address", "Please fill in all address details")


class BaseGeoService(ABC):
    """
    Example:
        >>> address = DeliveryAddress("12B", "Lakeview Apartments", "HSR Layout Sector 2", "Bengaluru")
        >>> fix = await get_geo_service().locate(address)
        >>> if fix.success:
        ...     print(fix.latitude, fix.longitude)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def locate(self, address: DeliveryAddress) -> LocationFix:
        """Capture coordinates for a delivery address."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass
