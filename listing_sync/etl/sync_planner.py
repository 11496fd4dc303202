"""Compute the add/remove diff between a fresh scrape and the stored listings."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..database.crud import PropertyStore
from ..models.sync_models import SyncPlan

logger = logging.getLogger(__name__)


def analyze_changes(source_market: str,
                    current_urls: Sequence[str],
                    existing_rows: Sequence[Dict[str, Any]],
                    candidates: Sequence[Dict[str, Any]] = ()) -> SyncPlan:
    """Split scraped URLs into new, removed and unchanged.

    Args:
        source_market: Market slug the stored rows belong to
        current_urls: URLs of the fresh scrape
        existing_rows: Stored rows with external_url and is_active
        candidates: Raw listings to pick the new ones from

    Returns:
        SyncPlan: The diff, in scrape order
    """
    existing_urls = [row["external_url"] for row in existing_rows if row.get("external_url")]
    existing_set = set(existing_urls)
    current_set = set(current_urls)

    new_urls = [url for url in current_urls if url not in existing_set]
    new_set = set(new_urls)
    active_count = sum(1 for row in existing_rows if row.get("is_active"))

    return SyncPlan(
        source_market=source_market,
        current_urls=list(current_urls),
        existing_urls=existing_urls,
        new_urls=new_urls,
        removed_urls=[url for url in existing_urls if url not in current_set],
        unchanged_urls=[url for url in current_urls if url in existing_set],
        new_properties=[
            record for record in candidates
            if isinstance(record, dict) and record.get("url") in new_set
        ],
        active_count=active_count,
        inactive_count=len(existing_rows) - active_count,
    )


async def plan_sync(store: PropertyStore,
                    source_market: str,
                    current_properties: Sequence[Dict[str, Any]],
                    current_urls: Optional[List[str]] = None) -> SyncPlan:
    """Diff a fresh scrape against the store's URLs for one market.

    Args:
        store: Property store
        source_market: Market slug
        current_properties: Raw listings of the fresh scrape
        current_urls: URLs of the fresh scrape; derived from the listings if omitted

    Returns:
        SyncPlan: The diff
    """
    if current_urls is None:
        current_urls = [record.get("url") for record in current_properties
                        if isinstance(record, dict) and record.get("url")]

    existing_rows = await store.fetch_market_urls(source_market)
    plan = analyze_changes(source_market, current_urls, existing_rows, current_properties)

    logger.info(
        f"Sync analysis for {source_market}: existing={len(plan.existing_urls)} "
        f"current={len(plan.current_urls)} new={len(plan.new_urls)} "
        f"removed={len(plan.removed_urls)} unchanged={len(plan.unchanged_urls)}"
    )
    return plan
