"""
Google Maps Geo Service

Geocodes delivery addresses with the Google Maps Geocoding API, biased to
the configured region and to a box around the restaurant. Used when
ENV_MODE is staging or production; needs GOOGLE_MAPS_API_KEY.
"""

import asyncio
import logging

import googlemaps
from googlemaps.exceptions import ApiError, Timeout, TransportError

from bhavan.core.config import get_settings
from bhavan.services.geo.base import INCOMPLETE_ADDRESS, BaseGeoService, DeliveryAddress, LocationFix

logger = logging.getLogger(__name__)

# Half-width of the bias box around the restaurant, in degrees
BIAS_DEGREES = 0.25


class GoogleGeoService(BaseGeoService):

    def __init__(self, client: googlemaps.Client = None):
        settings = get_settings()
        if client is None:
            if not settings.google_maps_api_key:
                raise ValueError("GOOGLE_MAPS_API_KEY is required outside development mode")
            client = googlemaps.Client(key=settings.google_maps_api_key, timeout=10)

        self._client = client
        self._region = settings.geo_region
        lat, lng = settings.restaurant_latitude, settings.restaurant_longitude
        self._bounds = {
            "southwest": (lat - BIAS_DEGREES, lng - BIAS_DEGREES),
            "northeast": (lat + BIAS_DEGREES, lng + BIAS_DEGREES),
        }
        logger.info(f"GoogleGeoService initialized (region={self._region})")

    @property
    def provider_name(self) -> str:
        return "google"

    def _geocode(self, query: str) -> list:
        return self._client.geocode(query, region=self._region, bounds=self._bounds)

    async def locate(self, address: DeliveryAddress) -> LocationFix:
        if not address.is_complete:
            return INCOMPLETE_ADDRESS

        try:
            matches = await asyncio.to_thread(self._geocode, address.query)
        except Timeout:
            logger.error(f"Google: geocode timed out for {address.query!r}")
            return LocationFix.failed("timeout", "Location lookup timed out. Please try again.")
        except ApiError as e:
            logger.error(f"Google: API error - {e}")
            return LocationFix.failed("api_error", "Location service error")
        except TransportError as e:
            logger.error(f"Google: transport error - {e}")
            return LocationFix.failed("transport_error", "Unable to reach location service")

        if not matches:
            logger.warning(f"Google: no match for {address.query!r}")
            return LocationFix.failed(
                "address_not_found",
                "Could not get your location. Please check the address and try again.",
            )

        best = matches[0]
        point = best["geometry"]["location"]
        logger.info(f"📍 Google: {best.get('formatted_address')} ({point['lat']}, {point['lng']})")
        return LocationFix(
            success=True,
            latitude=point["lat"],
            longitude=point["lng"],
            formatted_address=best.get("formatted_address", address.query),
        )

    async def health_check(self) -> bool:
        try:
            return bool(await asyncio.to_thread(self._geocode, "Bengaluru"))
        except (ApiError, Timeout, TransportError) as e:
            logger.error(f"Google: health check failed - {e}")
            return False
