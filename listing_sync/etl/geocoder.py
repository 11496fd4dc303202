"""Google Maps geocoding client for listing addresses."""

import asyncio
import logging
from typing import Optional, NamedTuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://maps.googleapis.com/maps/api/geocode/json"


class GeocodeResult(NamedTuple):
    """Coordinates resolved for an address."""
    lat: float
    lng: float
    formatted_address: str


class GoogleGeocoder:
    """Geocode addresses with the Google Maps Geocoding API.

    Failures never raise: an unreachable API, a non-"OK" status or an empty
    result set all yield None so a batch can carry on with null coordinates.
    """

    def __init__(self,
                 api_key: Optional[str] = None,
                 endpoint: str = DEFAULT_ENDPOINT,
                 timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        """Initialize the geocoder.

        Args:
            api_key: Google Maps API key. Geocoding is disabled without one
            endpoint: Geocoding API URL
            timeout: Optional request timeout in seconds
            session: Optional requests session to reuse
        """
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

        if not self.api_key:
            logger.warning("Google Maps API key not configured. Geocoding will be disabled.")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def geocode(self, address: str) -> Optional[GeocodeResult]:
        """Resolve an address to coordinates.

        Args:
            address: Full address, e.g. "12 Main St, Montgomery, AL 36104"

        Returns:
            Optional[GeocodeResult]: Coordinates or None if geocoding failed
        """
        if not self.enabled or not address:
            return None

        return await asyncio.to_thread(self._geocode_sync, address)

    def _geocode_sync(self, address: str) -> Optional[GeocodeResult]:
        try:
            response = self.session.get(
                self.endpoint,
                params={"address": address, "key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Geocoding error for address \"{address}\": {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Unexpected geocoding response for \"{address}\": {type(data).__name__}")
            return None

        status = data.get("status")
        results = data.get("results") or []
        if status != "OK" or not results:
            logger.warning(f"Geocoding failed for address \"{address}\": {status}")
            return None

        try:
            result = results[0]
            location = result["geometry"]["location"]
            return GeocodeResult(
                lat=float(location["lat"]),
                lng=float(location["lng"]),
                formatted_address=result.get("formatted_address", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unexpected geocoding response for \"{address}\": {e}")
            return None
