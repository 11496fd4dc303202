"""Tests for the full import of scraper results."""
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from listing_sync.database import PropertyStore
from listing_sync.etl.importer import ScraperImportService, load_scraper_file
from listing_sync.etl.media import MediaUploader
from listing_sync.etl.transform import PropertyTransformer
from listing_sync.exceptions import StoreError

from tests.fakes import (
    FakeGeocoder,
    FakeObjectStore,
    RecordingSleep,
    make_listing,
    make_store,
    write_images,
    write_scraper_file,
)

MARKET = "montgomery-al"


class ImportTestCase(unittest.IsolatedAsyncioTestCase):
    """Wires the import service to an in-memory store and fake services"""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.workdir = Path(self._tmp.name)

        self.store, self.engine = make_store()
        self.addCleanup(self.engine.dispose)
        self.object_store = FakeObjectStore()
        self.geocoder = FakeGeocoder()
        self.service = self._service(self.store)

    def _service(self, store):
        transformer = PropertyTransformer(
            uploader=MediaUploader(self.object_store),
            geocoder=self.geocoder,
            sleep=RecordingSleep(),
        )
        return ScraperImportService(store, transformer)

    def listing(self, slug, *images, **fields):
        return make_listing(
            f"https://www.rentals.example.com/homes/{slug}/",
            address=fields.pop("address", f"{slug} St"),
            downloaded_images=write_images(self.workdir, *images) if images else [],
            **fields,
        )


class TestImportRecords(ImportTestCase):

    async def test_mixed_batch(self):
        records = [
            self.listing("a-1000001", "a1.jpg", "a2.jpg"),
            self.listing("b-1000002"),
            self.listing("c-1000003", "c1.jpg"),
        ]

        result = await self.service.import_records(records, MARKET)

        self.assertTrue(result.success)
        self.assertEqual(result.summary.total_processed, 3)
        self.assertEqual(result.summary.new_properties, 2)
        self.assertEqual(result.summary.updated_properties, 0)
        self.assertEqual(result.summary.image_uploads, 3)
        self.assertEqual(result.summary.errors, [])
        self.assertEqual(result.city_results[MARKET].processed, 3)
        self.assertEqual(result.city_results[MARKET].new, 2)

        stats = await self.store.market_statistics(MARKET)
        self.assertEqual(stats.total_properties, 2)

    async def test_reimport_updates_instead_of_duplicating(self):
        records = [self.listing("a-1000001", "a1.jpg"), self.listing("c-1000003", "c1.jpg")]

        first = await self.service.import_records(records, MARKET)
        second = await self.service.import_records(records, MARKET)

        self.assertEqual(first.summary.new_properties, 2)
        self.assertEqual(second.summary.new_properties, 0)
        self.assertEqual(second.summary.updated_properties, 2)
        self.assertEqual(len(self.object_store.objects), 2)

        stats = await self.store.market_statistics(MARKET)
        self.assertEqual(stats.total_properties, 2)
        self.assertEqual(stats.active_properties, 2)

    async def test_update_overwrites_fields(self):
        await self.service.import_records([self.listing("a-1000001", "a1.jpg", rent="$1,000")], MARKET)
        await self.service.import_records([self.listing("a-1000001", "a1.jpg", rent="$1,100")], MARKET)

        row = await self.store.fetch_one_by("external_url", "https://www.rentals.example.com/homes/a-1000001/")
        self.assertEqual(row["price"], 1100)
        self.assertEqual(row["external_id"], "1000001")

    async def test_geocode_failure_still_imports(self):
        result = await self.service.import_records([self.listing("a-1000001", "a1.jpg")], MARKET)

        self.assertTrue(result.success)
        row = await self.store.fetch_one_by("external_url", "https://www.rentals.example.com/homes/a-1000001/")
        self.assertIsNone(row["latitude"])
        self.assertIsNone(row["longitude"])
        self.assertEqual(len(self.geocoder.calls), 1)

    async def test_listing_without_images_never_reaches_store(self):
        store = mock.AsyncMock(spec=PropertyStore)
        service = self._service(store)

        result = await service.import_records([self.listing("b-1000002")], MARKET)

        self.assertTrue(result.success)
        self.assertEqual(result.summary.total_processed, 1)
        self.assertEqual(result.summary.new_properties, 0)
        store.fetch_one_by.assert_not_awaited()
        store.insert_one.assert_not_awaited()
        self.assertEqual(self.geocoder.calls, [])

    async def test_invalid_record_is_reported(self):
        records = [
            {"title": "no url", "downloadedImages": write_images(self.workdir, "x1.jpg")},
            self.listing("a-1000001", "a1.jpg"),
        ]

        result = await self.service.import_records(records, MARKET)

        self.assertFalse(result.success)
        self.assertEqual(result.summary.total_processed, 2)
        self.assertEqual(result.summary.new_properties, 1)
        self.assertEqual(len(result.summary.errors), 1)
        self.assertTrue(result.summary.errors[0].startswith("Property processing failed: invalid record #1"))

    async def test_photo_less_records_are_skipped_before_validation(self):
        records = [
            {"title": "no url, no photos"},
            self.listing("b-1000002", bedrooms=["3"]),
            "not a listing",
        ]

        result = await self.service.import_records(records, MARKET)

        self.assertTrue(result.success)
        self.assertEqual(result.summary.total_processed, 3)
        self.assertEqual(result.summary.new_properties, 0)
        self.assertEqual(result.summary.errors, [])

    async def test_malformed_informational_fields_do_not_drop_listing(self):
        manifest = write_images(self.workdir, "a1.jpg")
        manifest[0]["size"] = None
        manifest[0]["watermarkRemoved"] = None
        manifest.append({"originalUrl": "https://photos.example.com/lost.jpg", "filename": "lost.jpg"})
        manifest.append(None)
        record = self.listing("a-1000001", images=["https://x/1.jpg", None], bedrooms=["3"])
        record["downloadedImages"] = manifest

        result = await self.service.import_records([record], MARKET)

        self.assertTrue(result.success)
        self.assertEqual(result.summary.new_properties, 1)
        self.assertEqual(result.summary.image_uploads, 1)
        row = await self.store.fetch_one_by("external_url", record["url"])
        self.assertEqual(len(row["images"]), 1)
        self.assertEqual(row["bedrooms"], 0)

    async def test_insert_failure_continues_batch(self):
        store = mock.AsyncMock(spec=PropertyStore)
        store.fetch_one_by.return_value = None
        store.insert_one.side_effect = [StoreError("duplicate key"), {"id": "x"}]
        service = self._service(store)

        result = await service.import_records(
            [self.listing("a-1000001", "a1.jpg"), self.listing("c-1000003", "c1.jpg")], MARKET
        )

        self.assertFalse(result.success)
        self.assertEqual(result.summary.new_properties, 1)
        self.assertEqual(result.summary.image_uploads, 1)
        self.assertEqual(result.summary.errors, [
            "Insert failed for https://www.rentals.example.com/homes/a-1000001/: duplicate key",
        ])

    async def test_update_failure_is_reported(self):
        store = mock.AsyncMock(spec=PropertyStore)
        store.fetch_one_by.return_value = {"id": "existing-id"}
        store.update_one.side_effect = StoreError("connection reset")
        service = self._service(store)

        result = await service.import_records([self.listing("a-1000001", "a1.jpg")], MARKET)

        self.assertEqual(result.summary.updated_properties, 0)
        self.assertEqual(result.summary.errors, [
            "Update failed for https://www.rentals.example.com/homes/a-1000001/: connection reset",
        ])

    async def test_unexpected_error_is_reported(self):
        store = mock.AsyncMock(spec=PropertyStore)
        store.fetch_one_by.side_effect = StoreError("lookup failed")
        service = self._service(store)

        result = await service.import_records([self.listing("a-1000001", "a1.jpg")], MARKET)

        self.assertEqual(result.summary.errors, ["Property processing failed: lookup failed"])


class TestImportFromFile(ImportTestCase):

    async def test_import_file(self):
        path = write_scraper_file(self.workdir, [
            self.listing("a-1000001", "a1.jpg"),
            self.listing("b-1000002"),
            self.listing("c-1000003", "c1.jpg"),
        ])

        result = await self.service.import_from_file(path, MARKET)

        self.assertTrue(result.success)
        self.assertEqual(result.summary.total_processed, 3)
        self.assertEqual(result.summary.new_properties, 2)
        self.assertEqual(result.to_json_dict()["summary"]["totalProcessed"], 3)
        self.assertIn(MARKET, result.to_json_dict()["cityResults"])

    async def test_three_record_file(self):
        path = write_scraper_file(self.workdir, [
            self.listing("a-1000001"),
            self.listing("b-1000002", "b1.jpg", rent="call for price"),
            self.listing("c-1000003", "c1.jpg"),
        ])

        result = await self.service.import_from_file(path, MARKET)

        self.assertEqual(result.summary.total_processed, 3)
        self.assertEqual(result.summary.new_properties, 2)
        self.assertEqual(result.summary.errors, [])
        row = await self.store.fetch_one_by("external_url", "https://www.rentals.example.com/homes/b-1000002/")
        self.assertEqual(row["price"], 0)
        clean = await self.store.fetch_one_by("external_url", "https://www.rentals.example.com/homes/c-1000003/")
        self.assertEqual(clean["price"], 1200)
        self.assertIsNone(await self.store.fetch_one_by("external_url", "https://www.rentals.example.com/homes/a-1000001/"))

    async def test_invalid_json(self):
        path = self.workdir / "broken.json"
        path.write_text("[{not json", encoding="utf-8")

        result = await self.service.import_from_file(path, MARKET)

        self.assertFalse(result.success)
        self.assertEqual(len(result.summary.errors), 1)
        self.assertTrue(result.summary.errors[0].startswith("Import failed: Invalid JSON"))

    async def test_not_an_array(self):
        path = self.workdir / "object.json"
        path.write_text('{"url": "https://example.com"}', encoding="utf-8")

        result = await self.service.import_from_file(path, MARKET)

        self.assertFalse(result.success)
        self.assertEqual(result.summary.errors, ["Import failed: Invalid scraper data format - expected array"])

    async def test_missing_file(self):
        result = await self.service.import_from_file(self.workdir / "missing.json", MARKET)

        self.assertFalse(result.success)
        self.assertTrue(result.summary.errors[0].startswith("Import failed: Scraper file not found"))


class TestLoadScraperFile(unittest.TestCase):

    def test_loads_array(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_scraper_file(Path(tmp), [{"url": "https://example.com/1"}])
            self.assertEqual(load_scraper_file(path), [{"url": "https://example.com/1"}])

    def test_missing_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            load_scraper_file("/nonexistent/scrape.json")


if __name__ == '__main__':
    unittest.main()
