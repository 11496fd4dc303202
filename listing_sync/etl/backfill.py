"""Geocode stored properties that are still missing coordinates."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..database.crud import PropertyStore
from ..exceptions import StoreError
from ..models.sync_models import BackfillResult
from .geocoder import GoogleGeocoder
from .normalizer import compose_full_address

logger = logging.getLogger(__name__)


class CoordinateBackfill:
    """Fills in latitude/longitude for active properties imported without them."""

    def __init__(self,
                 store: PropertyStore,
                 geocoder: GoogleGeocoder,
                 geocode_delay: float = 0.1,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.store = store
        self.geocoder = geocoder
        self.geocode_delay = geocode_delay
        self.sleep = sleep

    async def run(self, limit: Optional[int] = None) -> BackfillResult:
        """Geocode every active property lacking coordinates, oldest first.

        Args:
            limit: Optional cap on the number of properties to process

        Returns:
            BackfillResult: Counters and store errors
        """
        result = BackfillResult()

        try:
            properties = await self.store.fetch_missing_coordinates(limit)
        except StoreError as e:
            result.errors.append(f"Failed to fetch properties: {e}")
            return result

        logger.info(f"Found {len(properties)} properties without coordinates")

        for row in properties:
            result.processed += 1
            full_address = compose_full_address(
                row.get("address") or "", row.get("city") or "", row.get("state") or "", row.get("zip_code")
            )

            try:
                location = await self.geocoder.geocode(full_address)
            except Exception as e:
                logger.error(f"Geocoding error for {full_address}: {e}")
                location = None
            finally:
                await self.sleep(self.geocode_delay)

            if location is None:
                result.failed += 1
                continue

            try:
                await self.store.update_one(row["id"], {"latitude": location.lat, "longitude": location.lng})
            except StoreError as e:
                result.failed += 1
                result.errors.append(f"Update failed for {row['id']}: {e}")
                continue

            result.geocoded += 1
            logger.debug(f"Geocoded {full_address} -> {location.lat}, {location.lng}")

        logger.info(
            f"Backfill completed: processed={result.processed} "
            f"geocoded={result.geocoded} failed={result.failed}"
        )
        return result
