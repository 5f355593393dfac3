"""
Geo Service Factory

MockGeoService in development, GoogleGeoService otherwise.

    from bhavan.services.geo import DeliveryAddress, get_geo_service

    fix = await get_geo_service().locate(DeliveryAddress("12B", "Lakeview Apts", "Sector 2", "HSR Layout"))
"""

import logging
from functools import lru_cache

from bhavan.core.config import get_settings
from bhavan.services.geo.base import BaseGeoService, DeliveryAddress, LocationFix
from bhavan.services.geo.google import GoogleGeoService
from bhavan.services.geo.mock import MockGeoService

logger = logging.getLogger(__name__)


@lru_cache()
def get_geo_service() -> BaseGeoService:
    settings = get_settings()
    if settings.is_development:
        logger.info("Geo Service: Using MockGeoService (development mode)")
        return MockGeoService()
    logger.info(f"Geo Service: Using GoogleGeoService ({settings.env_mode.value} mode)")
    return GoogleGeoService()


def reset_geo_service() -> None:
    get_geo_service.cache_clear()


__all__ = [
    "get_geo_service",
    "reset_geo_service",
    "BaseGeoService",
    "DeliveryAddress",
    "LocationFix",
    "MockGeoService",
    "GoogleGeoService",
]
