"""Batch import and incremental sync of scraped listings into the property store."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from ..database.crud import PropertyStore
from ..exceptions import StoreError
from ..models.property_models import RawScrapedProperty
from ..models.sync_models import ImportResult
from ..monitoring.logger import SyncLogger
from .transform import PropertyTransformer

logger = logging.getLogger(__name__)

RawRecord = Union[RawScrapedProperty, Dict[str, Any]]


class ScraperImportService:
    """Reconciles scraped listings against the property store.

    Records are processed one at a time in input order. A failing record is
    reported in the result's error list and never aborts the batch.
    """

    def __init__(self,
                 store: PropertyStore,
                 transformer: PropertyTransformer,
                 clock: Optional[Callable[[], datetime]] = None):
        """Initialize the service.

        Args:
            store: Property store to upsert into
            transformer: Raw-to-canonical property transformer
            clock: Source of update timestamps
        """
        self.store = store
        self.transformer = transformer
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def import_from_file(self, file_path: Union[str, Path], source_market: str) -> ImportResult:
        """Import every listing of a scraper JSON file.

        Existing properties are matched by external URL and updated, the rest
        are inserted.

        Args:
            file_path: Path to a JSON array of scraped listings
            source_market: Market slug, e.g. "montgomery-al"

        Returns:
            ImportResult: Counters, errors and the per-market breakdown
        """
        try:
            records = load_scraper_file(file_path)
        except (OSError, ValueError) as e:
            result = ImportResult()
            result.summary.errors.append(f"Import failed: {e}")
            logger.error(f"Import failed: {e}")
            return result

        logger.info(f"Processing {len(records)} properties from {source_market}")
        return await self.import_records(records, source_market)

    async def import_records(self, records: Sequence[RawRecord], source_market: str) -> ImportResult:
        """Upsert already-loaded scraped listings.

        Args:
            records: Raw listing dictionaries or parsed listings
            source_market: Market slug

        Returns:
            ImportResult: Counters, errors and the per-market breakdown
        """
        result = ImportResult()
        summary = result.summary
        sync_logger = SyncLogger("import", source_market)
        sync_logger.log_run_start(len(records))

        for index, record in enumerate(records):
            summary.total_processed += 1

            if not self._has_images(record, sync_logger):
                continue

            raw = self._parse_record(record, index, summary.errors, sync_logger)
            if raw is None or not self._has_images(raw, sync_logger):
                continue

            try:
                existing = await self.store.fetch_one_by("external_url", raw.url)
                transformed = await self.transformer.transform(raw, source_market)
                row = transformed.to_row()

                if existing:
                    try:
                        await self.store.update_one(existing["id"], {**row, "updated_at": self.clock()})
                    except StoreError as e:
                        self._record_error(summary.errors, f"Update failed for {raw.url}: {e}", raw.url, sync_logger)
                        continue
                    summary.updated_properties += 1
                    sync_logger.log_record_saved(raw.url, "updated", transformed.image_count)
                else:
                    try:
                        await self.store.insert_one(row)
                    except StoreError as e:
                        self._record_error(summary.errors, f"Insert failed for {raw.url}: {e}", raw.url, sync_logger)
                        continue
                    summary.new_properties += 1
                    sync_logger.log_record_saved(raw.url, "inserted", transformed.image_count)

                summary.image_uploads += transformed.image_count

            except Exception as e:
                self._record_error(summary.errors, f"Property processing failed: {e}", raw.url, sync_logger)

        result.finalize(source_market)
        sync_logger.log_run_complete(result.success, summary.model_dump(exclude={"errors"}))
        logger.info(
            f"Import completed for {source_market}: new={summary.new_properties} "
            f"updated={summary.updated_properties} images={summary.image_uploads} "
            f"errors={len(summary.errors)}"
        )
        return result

    async def incremental_sync(self,
                               current_urls: Sequence[str],
                               new_raw_properties: Sequence[RawRecord],
                               removed_urls: Sequence[str],
                               source_market: str) -> ImportResult:
        """Apply a precomputed scrape diff to the store.

        New listings are inserted; listings whose URL vanished from the scrape
        are deactivated, but only within source_market.

        Args:
            current_urls: URLs of the fresh scrape
            new_raw_properties: Scraped listings whose URL is not stored yet
            removed_urls: Stored URLs missing from the fresh scrape
            source_market: Market slug the diff was computed for

        Returns:
            ImportResult: Counters, errors and the per-market breakdown
        """
        result = ImportResult()
        summary = result.summary
        sync_logger = SyncLogger("sync", source_market)
        sync_logger.log_run_start(
            len(new_raw_properties),
            current_urls=len(current_urls),
            removed_urls=len(removed_urls),
        )

        for index, record in enumerate(new_raw_properties):
            summary.total_processed += 1

            if not self._has_images(record, sync_logger):
                continue

            raw = self._parse_record(record, index, summary.errors, sync_logger)
            if raw is None or not self._has_images(raw, sync_logger):
                continue

            try:
                transformed = await self.transformer.transform(raw, source_market)
                try:
                    await self.store.insert_one(transformed.to_row())
                except StoreError as e:
                    self._record_error(summary.errors, f"Insert failed for {raw.url}: {e}", raw.url, sync_logger)
                    continue

                summary.new_properties += 1
                summary.image_uploads += transformed.image_count
                sync_logger.log_record_saved(raw.url, "inserted", transformed.image_count)

            except Exception as e:
                self._record_error(summary.errors, f"New property processing failed: {e}", raw.url, sync_logger)

        if removed_urls:
            summary.deactivated_properties = await self._deactivate(
                removed_urls, source_market, summary.errors, sync_logger
            )

        result.finalize(source_market)
        sync_logger.log_run_complete(result.success, summary.model_dump(exclude={"errors"}))
        logger.info(
            f"Incremental sync completed for {source_market}: new={summary.new_properties} "
            f"deactivated={summary.deactivated_properties} images={summary.image_uploads} "
            f"errors={len(summary.errors)}"
        )
        return result

    async def _deactivate(self,
                          removed_urls: Sequence[str],
                          source_market: str,
                          errors: List[str],
                          sync_logger: SyncLogger) -> int:
        try:
            deactivated = await self.store.bulk_update(
                {"is_active": False, "updated_at": self.clock()},
                in_column="external_url",
                in_values=list(removed_urls),
                filters={"source_market": source_market},
            )
        except StoreError as e:
            self._record_error(errors, f"Deactivation failed: {e}", None, sync_logger)
            return 0

        sync_logger.log_deactivation(len(removed_urls), deactivated)
        return deactivated

    @staticmethod
    def _parse_record(record: RawRecord,
                      index: int,
                      errors: List[str],
                      sync_logger: SyncLogger) -> Optional[RawScrapedProperty]:
        if isinstance(record, RawScrapedProperty):
            return record

        try:
            return RawScrapedProperty.model_validate(record)
        except ValidationError as e:
            url = record.get("url") if isinstance(record, dict) else None
            message = f"Property processing failed: invalid record #{index + 1}: {_describe_validation_error(e)}"
            ScraperImportService._record_error(errors, message, url, sync_logger)
            return None

    @staticmethod
    def _has_images(record: RawRecord, sync_logger: SyncLogger) -> bool:
        # Listings must have at least one photo; checked before validation so
        # photo-less records are skipped whatever else is wrong with them
        if isinstance(record, RawScrapedProperty):
            if record.has_images:
                return True
            url, label = record.url, record.title or record.address
        else:
            data = record if isinstance(record, dict) else {}
            if data.get("downloadedImages") or data.get("downloaded_images"):
                return True
            url, label = data.get("url"), data.get("title") or data.get("address")

        logger.info(f"Skipping property without images: {label}")
        sync_logger.log_record_skipped(url, "no downloaded images")
        return False

    @staticmethod
    def _record_error(errors: List[str], message: str, url: Optional[str], sync_logger: SyncLogger) -> None:
        errors.append(message)
        sync_logger.log_record_failed(url, message)


def load_scraper_file(file_path: Union[str, Path]) -> List[Any]:
    """Read a scraper results file.

    Args:
        file_path: Path to the JSON file

    Returns:
        List[Any]: The top-level array

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or not an array
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Scraper file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, list):
        raise ValueError("Invalid scraper data format - expected array")

    return data


def _describe_validation_error(error: ValidationError) -> str:
    parts: Iterable[str] = (
        f"{'.'.join(str(loc) for loc in err['loc']) or 'record'}: {err['msg']}"
        for err in error.errors()
    )
    return "; ".join(parts)
