"""
Mock Geo Service

Stands in for the geocoder during development. The same address always
lands on the same point within a few kilometres of the restaurant, so
seeded data and repeated checkouts stay stable.
"""

import asyncio
import hashlib
import logging
import random

from bhavan.core.config import get_settings
from bhavan.services.geo.base import INCOMPLETE_ADDRESS, BaseGeoService, DeliveryAddress, LocationFix

logger = logging.getLogger(__name__)

# Roughly 5km either way at Bengaluru's latitude
SPREAD_DEGREES = 0.05


class MockGeoService(BaseGeoService):
    """
    Attributes:
        failure_rate: Share of lookups that report the service as down
        latency: Simulated round trip in seconds
    """

    def __init__(self, failure_rate: float = 0.05, latency: float = 0.2):
        settings = get_settings()
        self.failure_rate = failure_rate
        self.latency = latency
        self.origin = (settings.restaurant_latitude, settings.restaurant_longitude)
        logger.info(f"MockGeoService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    def _offset(self, address: DeliveryAddress, salt: str) -> float:
        digest = hashlib.sha256(f"{salt}|{address.query.lower()}".encode("utf-8")).digest()
        fraction = int.from_bytes(digest[:4], "big") / 0xFFFFFFFF
        return (fraction * 2 - 1) * SPREAD_DEGREES

    async def locate(self, address: DeliveryAddress) -> LocationFix:
        if self.latency:
            await asyncio.sleep(self.latency)

        if not address.is_complete:
            return INCOMPLETE_ADDRESS

        if random.random() < self.failure_rate:
            logger.debug("Mock: simulated geocoder outage")
            return LocationFix.failed("service_unavailable", "Could not get your location. Please try again.")

        latitude = round(self.origin[0] + self._offset(address, "lat"), 6)
        longitude = round(self.origin[1] + self._offset(address, "lng"), 6)
        formatted = ", ".join(p.title() for p in address.parts)

        logger.info(f"📍 Mock: {formatted} -> ({latitude}, {longitude})")
        return LocationFix(
            success=True,
            latitude=latitude,
            longitude=longitude,
            formatted_address=formatted,
        )

    async def health_check(self) -> bool:
        return True
