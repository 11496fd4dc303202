"""Object store interface and the Google Cloud Storage implementation."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud import storage

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class ObjectStore(ABC):
    """Content store addressed by explicit path.

    Uploading to an existing path overwrites the object, so re-running an
    import against the same paths is idempotent.
    """

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Upload bytes to a path, replacing any existing object.

        Raises:
            StorageError: If the upload fails
        """

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Return the stable public URL of an object."""


class GCSObjectStore(ObjectStore):
    """Object store backed by a Google Cloud Storage bucket."""

    def __init__(self,
                 bucket_name: str,
                 credentials_path: Optional[str] = None,
                 client: Optional[storage.Client] = None):
        """Initialize the store.

        Args:
            bucket_name: GCS bucket name
            credentials_path: Optional service account key file
            client: Optional preconfigured storage client
        """
        if client is None:
            if credentials_path:
                client = storage.Client.from_service_account_json(credentials_path)
            else:
                client = storage.Client()

        self.client = client
        self.bucket_name = bucket_name
        self.bucket = client.bucket(bucket_name)

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        await asyncio.to_thread(self._upload_sync, path, data, content_type)

    def _upload_sync(self, path: str, data: bytes, content_type: str) -> None:
        try:
            blob = self.bucket.blob(path)
            blob.upload_from_string(data, content_type=content_type)
        except GoogleAPIError as e:
            raise StorageError(f"Upload to {self.bucket_name}/{path} failed: {e}") from e

        logger.debug(f"Uploaded {len(data)} bytes to {self.bucket_name}/{path}")

    def public_url(self, path: str) -> str:
        return self.bucket.blob(path).public_url
