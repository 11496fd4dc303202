"""Upload locally downloaded listing photos to the object store."""

import logging
import mimetypes
from pathlib import Path
from typing import List, Sequence

from ..models.property_models import DownloadedImage
from ..storage.object_store import ObjectStore
from .normalizer import slugify_address

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "property-images"


class MediaUploader:
    """Pushes a listing's downloaded images to deterministic storage paths."""

    def __init__(self, object_store: ObjectStore, prefix: str = STORAGE_PREFIX):
        """Initialize the uploader.

        Args:
            object_store: Destination object store
            prefix: Leading path segment for every uploaded object
        """
        self.object_store = object_store
        self.prefix = prefix

    def storage_path(self, source_market: str, property_address: str, filename: str) -> str:
        """Path of one image: {prefix}/{market}/{address_slug}/{filename}."""
        return f"{self.prefix}/{source_market}/{slugify_address(property_address)}/{filename}"

    async def upload_images(self,
                            downloaded_images: Sequence[DownloadedImage],
                            source_market: str,
                            property_address: str) -> List[str]:
        """Upload a listing's images, skipping the ones that fail.

        Args:
            downloaded_images: Media manifest produced by the scraper
            source_market: Market slug, e.g. "montgomery-al"
            property_address: Street address used to build the storage path

        Returns:
            List[str]: Public URLs of the images that were uploaded, in order
        """
        uploaded_urls: List[str] = []

        for image in downloaded_images or []:
            if not image.local_path or not image.filename:
                logger.warning(f"Skipping image entry without local path or filename: {image.original_url}")
                continue

            local_path = Path(image.local_path)
            if not local_path.exists():
                logger.warning(f"Image file not found: {image.local_path}")
                continue

            storage_path = self.storage_path(source_market, property_address, image.filename)
            try:
                data = local_path.read_bytes()
                await self.object_store.upload(storage_path, data, _content_type(image.filename))
                public_url = self.object_store.public_url(storage_path)
            except Exception as e:
                logger.error(f"Failed to upload image {image.filename}: {e}")
                continue

            uploaded_urls.append(public_url)
            logger.info(f"Uploaded: {image.filename} -> {public_url}")

        return uploaded_urls


def _content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "image/jpeg"
