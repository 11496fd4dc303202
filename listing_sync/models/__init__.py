"""Data models package."""

from .property_models import (
    Base,
    ScrapedProperty,
    DownloadedImage,
    RawScrapedProperty,
    CanonicalProperty,
    PropertyType,
    DataSource,
)
from .sync_models import (
    ImportResult,
    ImportSummary,
    MarketResult,
    SyncPlan,
    MarketStatistics,
    BackfillResult,
)

__all__ = [
    "Base",
    "ScrapedProperty",
    "DownloadedImage",
    "RawScrapedProperty",
    "CanonicalProperty",
    "PropertyType",
    "DataSource",
    "ImportResult",
    "ImportSummary",
    "MarketResult",
    "SyncPlan",
    "MarketStatistics",
    "BackfillResult",
]
