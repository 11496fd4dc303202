"""Tests for incremental sync and change analysis."""
import unittest
from unittest import mock

from listing_sync.database import PropertyStore
from listing_sync.etl.sync_planner import analyze_changes, plan_sync
from listing_sync.exceptions import StoreError

from tests.test_importer import ImportTestCase

MONTGOMERY = "montgomery-al"
BIRMINGHAM = "birmingham-al"


def url(slug):
    return f"https://www.rentals.example.com/homes/{slug}/"


class TestAnalyzeChanges(unittest.TestCase):

    def test_diff(self):
        existing = [
            {"external_url": url("a"), "is_active": True},
            {"external_url": url("b"), "is_active": True},
            {"external_url": url("old"), "is_active": False},
        ]
        candidates = [{"url": url("a")}, {"url": url("c")}, "garbage"]

        plan = analyze_changes(MONTGOMERY, [url("a"), url("c")], existing, candidates)

        self.assertEqual(plan.new_urls, [url("c")])
        self.assertEqual(plan.removed_urls, [url("b"), url("old")])
        self.assertEqual(plan.unchanged_urls, [url("a")])
        self.assertEqual(plan.new_properties, [{"url": url("c")}])
        self.assertEqual(plan.active_count, 2)
        self.assertEqual(plan.inactive_count, 1)
        self.assertEqual(plan.analysis(), {
            "currentUrls": 2,
            "existingUrls": 3,
            "newUrls": 1,
            "removedUrls": 2,
        })

    def test_empty_store(self):
        plan = analyze_changes(MONTGOMERY, [url("a")], [], [{"url": url("a")}])

        self.assertEqual(plan.new_urls, [url("a")])
        self.assertEqual(plan.removed_urls, [])
        self.assertEqual(len(plan.new_properties), 1)


class TestIncrementalSync(ImportTestCase):

    async def _seed(self, market, *slugs):
        records = [self.listing(slug, f"{slug}.jpg") for slug in slugs]
        # Insert-only, so a URL already stored under another market gets its own row
        result = await self.service.incremental_sync([r["url"] for r in records], records, [], market)
        self.assertEqual(result.summary.new_properties, len(slugs))

    async def test_adds_new_and_deactivates_removed(self):
        await self._seed(MONTGOMERY, "a-1000001", "b-1000002")
        current = [self.listing("a-1000001", "a.jpg"), self.listing("c-1000003", "c.jpg")]

        plan = await plan_sync(self.store, MONTGOMERY, current)
        result = await self.service.incremental_sync(
            plan.current_urls, plan.new_properties, plan.removed_urls, MONTGOMERY
        )

        self.assertEqual(plan.new_urls, [url("c-1000003")])
        self.assertEqual(plan.removed_urls, [url("b-1000002")])
        self.assertTrue(result.success)
        self.assertEqual(result.summary.total_processed, 1)
        self.assertEqual(result.summary.new_properties, 1)
        self.assertEqual(result.summary.deactivated_properties, 1)
        self.assertEqual(result.city_results[MONTGOMERY].deactivated, 1)

        rows = {row["external_url"]: row["is_active"] for row in await self.store.fetch_market_urls(MONTGOMERY)}
        self.assertEqual(rows, {url("a-1000001"): True, url("b-1000002"): False, url("c-1000003"): True})

    async def test_deactivation_is_scoped_to_market(self):
        await self._seed(MONTGOMERY, "shared-1000009")
        await self._seed(BIRMINGHAM, "shared-1000009")

        result = await self.service.incremental_sync([], [], [url("shared-1000009")], MONTGOMERY)

        self.assertEqual(result.summary.deactivated_properties, 1)
        montgomery = await self.store.fetch_market_urls(MONTGOMERY)
        birmingham = await self.store.fetch_market_urls(BIRMINGHAM)
        self.assertFalse(montgomery[0]["is_active"])
        self.assertTrue(birmingham[0]["is_active"])

    async def test_deactivated_count_is_rows_matched(self):
        await self._seed(MONTGOMERY, "a-1000001")

        result = await self.service.incremental_sync(
            [], [], [url("a-1000001"), url("never-stored-1000005")], MONTGOMERY
        )

        self.assertEqual(result.summary.deactivated_properties, 1)

    async def test_new_listing_without_images_is_skipped(self):
        result = await self.service.incremental_sync(
            [url("b-1000002")], [self.listing("b-1000002")], [], MONTGOMERY
        )

        self.assertTrue(result.success)
        self.assertEqual(result.summary.total_processed, 1)
        self.assertEqual(result.summary.new_properties, 0)
        self.assertEqual(await self.store.fetch_market_urls(MONTGOMERY), [])

    async def test_insert_failure_is_reported(self):
        store = mock.AsyncMock(spec=PropertyStore)
        store.insert_one.side_effect = StoreError("constraint violated")
        store.bulk_update.return_value = 0
        service = self._service(store)

        result = await service.incremental_sync(
            [url("a-1000001")], [self.listing("a-1000001", "a.jpg")], [], MONTGOMERY
        )

        self.assertFalse(result.success)
        self.assertEqual(result.summary.new_properties, 0)
        self.assertEqual(result.summary.image_uploads, 0)
        self.assertEqual(result.summary.errors, [
            f"Insert failed for {url('a-1000001')}: constraint violated",
        ])
        store.bulk_update.assert_not_awaited()

    async def test_deactivation_failure_is_reported(self):
        store = mock.AsyncMock(spec=PropertyStore)
        store.bulk_update.side_effect = StoreError("timeout")
        service = self._service(store)

        result = await service.incremental_sync([], [], [url("a-1000001")], MONTGOMERY)

        self.assertFalse(result.success)
        self.assertEqual(result.summary.deactivated_properties, 0)
        self.assertEqual(result.summary.errors, ["Deactivation failed: timeout"])

    async def test_deactivation_filters_on_market(self):
        store = mock.AsyncMock(spec=PropertyStore)
        store.bulk_update.return_value = 2
        service = self._service(store)

        result = await service.incremental_sync([], [], [url("a"), url("b")], MONTGOMERY)

        self.assertEqual(result.summary.deactivated_properties, 2)
        args, kwargs = store.bulk_update.call_args
        self.assertFalse(args[0]["is_active"])
        self.assertIn("updated_at", args[0])
        self.assertEqual(kwargs["in_column"], "external_url")
        self.assertEqual(kwargs["in_values"], [url("a"), url("b")])
        self.assertEqual(kwargs["filters"], {"source_market": MONTGOMERY})


if __name__ == '__main__':
    unittest.main()
