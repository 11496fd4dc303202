"""Property data models for scraped listing ingestion."""

import uuid
from datetime import datetime, timezone
from typing import Optional, List, Union
from enum import Enum
from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, JSON
from sqlalchemy.orm import declarative_base
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..etl.normalizer import normalize_features


Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PropertyType(str, Enum):
    """Standardized property types."""
    HOUSE = "house"
    APARTMENT = "apartment"
    TOWNHOUSE = "townhouse"
    CONDO = "condo"


class DataSource(str, Enum):
    """Where a property row came from."""
    SCRAPED = "scraped"


# SQLAlchemy Models

class ScrapedProperty(Base):
    """Property row written by the import and sync pipeline."""

    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    landlord_id = Column(String(36), nullable=False)

    # Listing details
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False, default=0)
    property_type = Column(String(50), nullable=False)
    bedrooms = Column(Integer, nullable=False, default=0)
    bathrooms = Column(Float, nullable=False, default=0)
    sqft = Column(Integer, nullable=True)

    # Location
    address = Column(String(500), nullable=False, default="")
    city = Column(String(100), nullable=False)
    state = Column(String(10), nullable=False)
    zip_code = Column(String(20), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Media
    images = Column(JSON, nullable=True)

    # Status and provenance
    is_active = Column(Boolean, nullable=False, default=True)
    data_source = Column(String(50), nullable=True)
    # Not unique: the same URL may be listed under two markets
    external_url = Column(String(1000), nullable=True, index=True)
    external_id = Column(String(100), nullable=True)
    source_market = Column(String(100), nullable=True, index=True)
    last_scraped_at = Column(DateTime, nullable=True)
    scraped_contact_name = Column(String(255), nullable=True)
    scraped_contact_phone = Column(String(50), nullable=True)

    # Metadata
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow)

    def to_dict(self) -> dict:
        """Return the row as a plain column dictionary."""
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}


# Pydantic Models

class DownloadedImage(BaseModel):
    """One entry of the scraper's local media manifest."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    original_url: str = ""
    # Entries without a path or filename are skipped by the uploader
    local_path: str = ""
    filename: str = ""
    size: Optional[int] = 0
    watermark_removed: bool = False
    was_cropped: bool = False

    @field_validator("original_url", "local_path", "filename", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return "" if value is None else str(value)

    @field_validator("size", mode="before")
    @classmethod
    def _coerce_size(cls, value):
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    @field_validator("watermark_removed", "was_cropped", mode="before")
    @classmethod
    def _coerce_flag(cls, value):
        return value if isinstance(value, bool) else False


class RawScrapedProperty(BaseModel):
    """A single listing as emitted by the scraper."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    url: str
    title: str = ""
    address: str = ""
    zip_code: str = ""
    rent: str = ""
    bedrooms: str = ""
    bathrooms: str = ""
    square_feet: str = ""
    year_built: str = ""
    property_type: str = ""
    listed_by: str = ""
    phone_number: str = ""
    description: str = ""
    availability: str = ""
    # Scrapers emit either a comma separated string or a list
    features: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    downloaded_images: List[DownloadedImage] = Field(default_factory=list)

    @field_validator(
        "title", "address", "zip_code", "rent", "bedrooms", "bathrooms",
        "square_feet", "year_built", "property_type", "listed_by",
        "phone_number", "description", "availability",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value):
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("features", mode="before")
    @classmethod
    def _normalize_features(cls, value: Union[str, List[str], None]) -> List[str]:
        return normalize_features(value)

    @field_validator("images", mode="before")
    @classmethod
    def _keep_url_strings(cls, value):
        # Informational only, so malformed entries are dropped
        if not isinstance(value, list):
            return []
        return [image for image in value if isinstance(image, str)]

    @field_validator("downloaded_images", mode="before")
    @classmethod
    def _keep_manifest_entries(cls, value):
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, (dict, DownloadedImage))]

    @property
    def has_images(self) -> bool:
        """Whether the listing carries at least one downloaded photo."""
        return len(self.downloaded_images) > 0


class CanonicalProperty(BaseModel):
    """Property record ready for persistence."""

    model_config = ConfigDict(use_enum_values=True)

    # Identity
    external_url: str
    external_id: str
    source_market: str
    last_scraped_at: datetime

    # Descriptive
    title: str
    description: str
    property_type: PropertyType
    bedrooms: int = 0
    bathrooms: float = 0
    sqft: Optional[int] = None
    price: int = 0

    # Location
    address: str = ""
    city: str
    state: str
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Media
    images: Optional[List[str]] = None

    # Ownership and status
    landlord_id: str
    is_active: bool = True
    data_source: DataSource = Field(default=DataSource.SCRAPED, validate_default=True)
    scraped_contact_name: Optional[str] = None
    scraped_contact_phone: Optional[str] = None

    def to_row(self) -> dict:
        """Return the column mapping handed to the property store."""
        return self.model_dump(mode="python")

    @property
    def image_count(self) -> int:
        return len(self.images) if self.images else 0
