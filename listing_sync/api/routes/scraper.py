"""Scraper import and sync routes."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ...etl.factory import PipelineFactory
from ...etl.normalizer import is_valid_market
from ...etl.sync_planner import plan_sync
from ...exceptions import StoreError
from ..dependencies import get_pipeline_factory

logger = logging.getLogger(__name__)

router = APIRouter()


class ImportRequest(BaseModel):
    """Full import of a scraper results file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file_path: Optional[str] = None
    source_market: Optional[str] = None


class SyncRequest(BaseModel):
    """Incremental sync of a fresh scrape."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_urls: Optional[List[str]] = None
    new_properties: Optional[List[Dict[str, Any]]] = None
    source_market: Optional[str] = None


def _check_market(source_market: str) -> None:
    if not is_valid_market(source_market):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid source market format: {source_market}",
        )


@router.post("/import")
async def import_properties(request: ImportRequest,
                            factory: PipelineFactory = Depends(get_pipeline_factory)):
    """Import every listing of a scraper results file."""
    if not request.file_path or not request.source_market:
        raise HTTPException(status_code=400, detail="Missing filePath or sourceMarket")
    _check_market(request.source_market)

    service = factory.create_import_service()
    result = await service.import_from_file(request.file_path, request.source_market)
    return result.to_json_dict()


@router.post("/sync")
async def sync_properties(request: SyncRequest,
                          factory: PipelineFactory = Depends(get_pipeline_factory)):
    """Insert new listings and deactivate the ones missing from the scrape."""
    if request.current_urls is None or not request.source_market:
        raise HTTPException(status_code=400, detail="Missing currentUrls or sourceMarket")
    _check_market(request.source_market)

    service = factory.create_import_service()
    try:
        plan = await plan_sync(
            service.store,
            request.source_market,
            request.new_properties or [],
            current_urls=request.current_urls,
        )
    except StoreError as e:
        logger.error(f"Sync analysis failed for {request.source_market}: {e}")
        raise HTTPException(status_code=500, detail=f"Sync analysis failed: {e}")

    result = await service.incremental_sync(
        plan.current_urls, plan.new_properties, plan.removed_urls, request.source_market
    )

    response = result.to_json_dict()
    response["analysis"] = plan.analysis()
    return response


@router.get("/sync")
async def sync_status(source_market: Optional[str] = Query(default=None, alias="sourceMarket"),
                      factory: PipelineFactory = Depends(get_pipeline_factory)):
    """Stored listing counts for a market."""
    if not source_market:
        raise HTTPException(status_code=400, detail="Missing sourceMarket")

    try:
        stats = await factory.store.market_statistics(source_market)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return stats.to_json_dict()
