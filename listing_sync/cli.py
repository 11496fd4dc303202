"""Command line entry points for importing and syncing scraped listings.

Usage:
    python -m listing_sync import <filePath> <sourceMarket>
    python -m listing_sync sync <currentFilePath> <sourceMarket>
    python -m listing_sync backfill-geocodes [--limit N]
    python -m listing_sync status <sourceMarket>
"""

import argparse
import asyncio
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config.settings import Settings, get_settings
from .etl.factory import PipelineFactory
from .etl.importer import load_scraper_file
from .etl.normalizer import is_valid_market
from .etl.sync_planner import plan_sync
from .exceptions import ConfigurationError
from .models.sync_models import ImportResult
from .monitoring.logger import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="listing_sync",
        description="Import scraped rental listings and keep them in sync",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import every listing of a scraper results file")
    import_parser.add_argument("file_path", help="Scraper results JSON file")
    import_parser.add_argument("source_market", help="Market slug, e.g. montgomery-al")

    sync_parser = subparsers.add_parser("sync", help="Add new listings and deactivate removed ones")
    sync_parser.add_argument("file_path", help="Current scraper results JSON file")
    sync_parser.add_argument("source_market", help="Market slug, e.g. montgomery-al")

    backfill_parser = subparsers.add_parser("backfill-geocodes", help="Geocode stored properties missing coordinates")
    backfill_parser.add_argument("--limit", type=int, default=None, help="Max properties")

    status_parser = subparsers.add_parser("status", help="Show stored listing counts for a market")
    status_parser.add_argument("source_market", help="Market slug, e.g. montgomery-al")

    return parser


def main(argv: Optional[List[str]] = None,
         settings: Optional[Settings] = None,
         factory: Optional[PipelineFactory] = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()

    source_market = getattr(args, "source_market", None)
    if source_market is not None and not is_valid_market(source_market):
        print(f"❌ Invalid source market format: {source_market}")
        print("   Expected format: city-state (e.g., montgomery-al, birmingham-al)")
        return 1

    file_path = getattr(args, "file_path", None)
    if file_path is not None and not Path(file_path).exists():
        print(f"❌ File not found: {file_path}")
        return 1

    if factory is None:
        try:
            settings.require_store_config(with_storage=args.command in ("import", "sync"))
        except ConfigurationError as e:
            print(f"❌ {e}")
            return 1
        setup_logging(settings.log_file, settings.log_level)
        factory = PipelineFactory(settings)

    commands = {
        "import": lambda: run_import(factory, args.file_path, args.source_market),
        "sync": lambda: run_sync(factory, settings, args.file_path, args.source_market),
        "backfill-geocodes": lambda: run_backfill(factory, args.limit),
        "status": lambda: run_status(factory, args.source_market),
    }

    try:
        return asyncio.run(commands[args.command]())
    except KeyboardInterrupt:
        print("\n\n⏹️  Interrupted by user")
        return 130


async def run_import(factory: PipelineFactory, file_path: str, source_market: str) -> int:
    print("🏠 Scraper Import")
    print("=" * 40)
    print(f"📁 File: {file_path}")
    print(f"🏙️  Market: {source_market}")
    print("")

    start_time = time.monotonic()
    result = await factory.create_import_service().import_from_file(file_path, source_market)
    duration = time.monotonic() - start_time

    print("\n📊 Import Results")
    print("=" * 40)
    print(f"✅ Success: {result.success}")
    print(f"⏱️  Duration: {duration:.2f}s")
    print(f"📈 Total Processed: {result.summary.total_processed}")
    print(f"🆕 New Properties: {result.summary.new_properties}")
    print(f"🔄 Updated Properties: {result.summary.updated_properties}")
    print(f"🖼️  Images Uploaded: {result.summary.image_uploads}")
    _print_errors(result)

    print("\n🏙️  City Results:")
    for market, stats in result.city_results.items():
        print(f"   {market}: {stats.processed} processed, {stats.new} new, {stats.updated} updated")

    return 0 if result.success else 1


async def run_sync(factory: PipelineFactory, settings: Settings, file_path: str, source_market: str) -> int:
    print("🔄 Scraper Sync")
    print("=" * 40)
    print(f"📁 File: {file_path}")
    print(f"🏙️  Market: {source_market}")
    print("")

    try:
        current_properties = load_scraper_file(file_path)
    except (OSError, ValueError) as e:
        print(f"\n❌ Sync failed: {e}")
        return 1

    service = factory.create_import_service()
    start_time = time.monotonic()

    plan = await plan_sync(service.store, source_market, current_properties)
    print("📊 Change Analysis:")
    print(f"   🆕 New properties: {len(plan.new_urls)}")
    print(f"   ❌ Removed properties: {len(plan.removed_urls)}")
    print(f"   ✅ Unchanged properties: {len(plan.unchanged_urls)}")

    result = await service.incremental_sync(
        plan.current_urls, plan.new_properties, plan.removed_urls, source_market
    )
    duration = time.monotonic() - start_time

    print("\n📊 Sync Results")
    print("=" * 40)
    print(f"✅ Success: {result.success}")
    print(f"⏱️  Duration: {duration:.2f}s")
    print(f"🆕 New Properties Added: {result.summary.new_properties}")
    print(f"❌ Properties Deactivated: {result.summary.deactivated_properties}")
    print(f"🖼️  Images Uploaded: {result.summary.image_uploads}")
    _print_errors(result)

    total = len(plan.existing_urls) + result.summary.new_properties
    active = plan.active_count + result.summary.new_properties - result.summary.deactivated_properties
    print("\n📈 Final Statistics:")
    print(f"   Total Properties: {total}")
    print(f"   Active Properties: {active}")
    print(f"   Inactive Properties: {total - active}")

    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "sourceMarket": source_market,
        "filePath": str(file_path),
        "duration": round(duration, 2),
        "results": {
            "success": result.success,
            "newProperties": result.summary.new_properties,
            "deactivatedProperties": result.summary.deactivated_properties,
            "imageUploads": result.summary.image_uploads,
            "errors": len(result.summary.errors),
        },
        "analysis": plan.analysis(),
    }
    log_file = write_sync_audit(settings.imports.audit_log_dir, entry)
    print(f"📝 Logged to: {log_file}")

    return 0 if result.success else 1


async def run_backfill(factory: PipelineFactory, limit: Optional[int]) -> int:
    print("🗺️  Geocoding Backfill")
    print("=" * 40)

    result = await factory.create_backfill().run(limit)

    print(f"📈 Processed: {result.processed}")
    print(f"✅ Geocoded: {result.geocoded}")
    print(f"⚠️  Failed: {result.failed}")
    for index, error in enumerate(result.errors, start=1):
        print(f"   {index}. {error}")

    return 0 if not result.errors else 1


async def run_status(factory: PipelineFactory, source_market: str) -> int:
    stats = await factory.store.market_statistics(source_market)

    print(f"🏙️  Market: {stats.source_market}")
    print(f"   Total Properties: {stats.total_properties}")
    print(f"   Active Properties: {stats.active_properties}")
    print(f"   Inactive Properties: {stats.inactive_properties}")
    print(f"   Last Scraped: {stats.last_scraped_at.isoformat() if stats.last_scraped_at else 'never'}")
    return 0


def write_sync_audit(log_dir: str, entry: Dict[str, Any]) -> Path:
    """Append one JSON line describing a sync run to the daily audit log.

    Args:
        log_dir: Directory holding the audit logs
        entry: Audit record

    Returns:
        Path: The log file written to
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    log_file = directory / f"scraper-sync-{datetime.now(timezone.utc).date().isoformat()}.jsonl"
    with open(log_file, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry) + "\n")
    return log_file


def _print_errors(result: ImportResult) -> None:
    print(f"🚨 Errors: {len(result.summary.errors)}")
    if result.summary.errors:
        print("\n🚨 Errors:")
        for index, error in enumerate(result.summary.errors, start=1):
            print(f"   {index}. {error}")
