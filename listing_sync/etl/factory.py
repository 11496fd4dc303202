"""Factory module for wiring the import pipeline from settings."""

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from ..config.settings import Settings
from ..database.connection import create_db_engine, create_session_factory, init_db
from ..database.crud import PropertyStore, SQLAlchemyPropertyStore
from ..storage.object_store import GCSObjectStore, ObjectStore
from .backfill import CoordinateBackfill
from .geocoder import GoogleGeocoder
from .importer import ScraperImportService
from .media import MediaUploader
from .transform import PropertyTransformer

logger = logging.getLogger(__name__)


class PipelineFactory:
    """Factory for creating and sharing pipeline components."""

    def __init__(self,
                 settings: Settings,
                 store: Optional[PropertyStore] = None,
                 object_store: Optional[ObjectStore] = None,
                 geocoder: Optional[GoogleGeocoder] = None,
                 engine: Optional[Engine] = None):
        """Initialize the factory.

        Args:
            settings: Application settings
            store: Optional prebuilt property store
            object_store: Optional prebuilt object store
            geocoder: Optional prebuilt geocoder
            engine: Optional prebuilt database engine
        """
        self.settings = settings
        self._engine = engine
        self._store = store
        self._object_store = object_store
        self._geocoder = geocoder

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_db_engine(
                self.settings.database.database_url,
                echo=self.settings.database.database_echo,
            )
            init_db(self._engine)
        return self._engine

    @property
    def store(self) -> PropertyStore:
        if self._store is None:
            self._store = SQLAlchemyPropertyStore(create_session_factory(self.engine))
        return self._store

    @property
    def object_store(self) -> ObjectStore:
        if self._object_store is None:
            self._object_store = GCSObjectStore(
                self.settings.storage.storage_bucket,
                credentials_path=self.settings.storage.storage_credentials_path,
            )
        return self._object_store

    @property
    def geocoder(self) -> GoogleGeocoder:
        if self._geocoder is None:
            geocoding = self.settings.geocoding
            self._geocoder = GoogleGeocoder(
                api_key=geocoding.google_maps_api_key,
                endpoint=geocoding.geocoding_endpoint,
                timeout=geocoding.geocoding_timeout,
            )
        return self._geocoder

    def create_transformer(self) -> PropertyTransformer:
        return PropertyTransformer(
            uploader=MediaUploader(self.object_store),
            geocoder=self.geocoder,
            landlord_id=self.settings.imports.system_landlord_id,
            geocode_delay=self.settings.geocoding.geocoding_delay_seconds,
        )

    def create_import_service(self) -> ScraperImportService:
        """Create the import and sync service."""
        return ScraperImportService(self.store, self.create_transformer())

    def create_backfill(self) -> CoordinateBackfill:
        """Create the coordinate backfill job."""
        return CoordinateBackfill(
            self.store,
            self.geocoder,
            geocode_delay=self.settings.geocoding.geocoding_delay_seconds,
        )
