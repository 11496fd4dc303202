"""Transform raw scraped listings into canonical property records."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from ..config.settings import DEFAULT_SYSTEM_LANDLORD_ID
from ..models.property_models import CanonicalProperty, RawScrapedProperty
from .geocoder import GoogleGeocoder
from .media import MediaUploader
from . import normalizer

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Property"


class PropertyTransformer:
    """Builds one canonical property from one scraped listing.

    Uploads the listing's photos, geocodes its address and normalizes the
    free-text fields. Bad data degrades to defaults rather than raising.
    """

    def __init__(self,
                 uploader: MediaUploader,
                 geocoder: GoogleGeocoder,
                 landlord_id: str = DEFAULT_SYSTEM_LANDLORD_ID,
                 geocode_delay: float = 0.1,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 clock: Optional[Callable[[], datetime]] = None):
        """Initialize the transformer.

        Args:
            uploader: Media uploader for the listing photos
            geocoder: Geocoding client
            landlord_id: Account that owns scraped, unclaimed listings
            geocode_delay: Seconds to wait after every geocode call
            sleep: Coroutine used for the delay
            clock: Source of the scrape timestamp
        """
        self.uploader = uploader
        self.geocoder = geocoder
        self.landlord_id = landlord_id
        self.geocode_delay = geocode_delay
        self.sleep = sleep
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def transform(self, raw: RawScrapedProperty, source_market: str) -> CanonicalProperty:
        """Transform a single scraped listing.

        Args:
            raw: Scraped listing
            source_market: Market slug driving city/state and storage paths

        Returns:
            CanonicalProperty: Record ready for the property store
        """
        location = normalizer.parse_city_state(source_market)
        city, state = location['city'], location['state']

        image_urls = await self.uploader.upload_images(raw.downloaded_images, source_market, raw.address)

        latitude: Optional[float] = None
        longitude: Optional[float] = None
        if raw.address:
            latitude, longitude = await self._geocode(raw, city, state)

        return CanonicalProperty(
            landlord_id=self.landlord_id,
            title=raw.title or DEFAULT_TITLE,
            description=normalizer.build_description(raw.description, raw.availability, raw.features),
            price=normalizer.parse_price(raw.rent),
            property_type=normalizer.standardize_property_type(raw.property_type),
            address=raw.address or '',
            city=city,
            state=state,
            zip_code=raw.zip_code or None,
            latitude=latitude,
            longitude=longitude,
            bedrooms=normalizer.parse_bedrooms(raw.bedrooms),
            bathrooms=normalizer.parse_bathrooms(raw.bathrooms),
            sqft=normalizer.parse_square_feet(raw.square_feet),
            images=image_urls or None,
            is_active=True,
            external_url=raw.url,
            external_id=normalizer.generate_external_id(raw.url),
            source_market=source_market,
            last_scraped_at=self.clock(),
            scraped_contact_name=raw.listed_by or None,
            scraped_contact_phone=raw.phone_number or None,
        )

    async def _geocode(self, raw: RawScrapedProperty, city: str, state: str):
        full_address = normalizer.compose_full_address(raw.address, city, state, raw.zip_code)
        logger.debug(f"Geocoding: {full_address}")

        try:
            result = await self.geocoder.geocode(full_address)
        except Exception as e:
            logger.error(f"Geocoding error for {raw.address}: {e}")
            return None, None
        finally:
            await self.sleep(self.geocode_delay)

        if result is None:
            logger.warning(f"Geocoding failed for: {raw.address}")
            return None, None

        logger.debug(f"Geocoded: {raw.address} -> {result.lat}, {result.lng}")
        return result.lat, result.lng
