"""Result and planning models for import and sync runs."""

from datetime import datetime
from typing import Optional, Dict, List, Any
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Serializes with the camelCase keys the scraper tooling expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class MarketResult(_CamelModel):
    """Per source market breakdown of a run."""

    processed: int = 0
    new: int = 0
    updated: int = 0
    deactivated: int = 0


class ImportSummary(_CamelModel):
    """Aggregate counters of a run."""

    total_processed: int = 0
    new_properties: int = 0
    updated_properties: int = 0
    deactivated_properties: int = 0
    image_uploads: int = 0
    errors: List[str] = Field(default_factory=list)


class ImportResult(_CamelModel):
    """Outcome of an import or incremental sync run."""

    success: bool = False
    summary: ImportSummary = Field(default_factory=ImportSummary)
    city_results: Dict[str, MarketResult] = Field(default_factory=dict)

    def finalize(self, source_market: str) -> "ImportResult":
        """Record the market breakdown and derive the success flag."""
        self.city_results[source_market] = MarketResult(
            processed=self.summary.total_processed,
            new=self.summary.new_properties,
            updated=self.summary.updated_properties,
            deactivated=self.summary.deactivated_properties,
        )
        self.success = len(self.summary.errors) == 0
        return self


class SyncPlan(_CamelModel):
    """Diff of a fresh scrape against the stored URLs of one market."""

    source_market: str
    current_urls: List[str] = Field(default_factory=list)
    existing_urls: List[str] = Field(default_factory=list)
    new_urls: List[str] = Field(default_factory=list)
    removed_urls: List[str] = Field(default_factory=list)
    unchanged_urls: List[str] = Field(default_factory=list)
    new_properties: List[Dict[str, Any]] = Field(default_factory=list)
    active_count: int = 0
    inactive_count: int = 0

    def analysis(self) -> Dict[str, int]:
        """Counts reported alongside a sync result."""
        return {
            "currentUrls": len(self.current_urls),
            "existingUrls": len(self.existing_urls),
            "newUrls": len(self.new_urls),
            "removedUrls": len(self.removed_urls),
        }


class MarketStatistics(_CamelModel):
    """Stored listing counts for one market."""

    source_market: str
    total_properties: int = 0
    active_properties: int = 0
    inactive_properties: int = 0
    last_scraped_at: Optional[datetime] = None


class BackfillResult(_CamelModel):
    """Outcome of a coordinate backfill run."""

    processed: int = 0
    geocoded: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
