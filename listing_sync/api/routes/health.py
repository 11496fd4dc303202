"""Health check routes."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from ... import __version__
from ...config import settings
from ...database.connection import check_db_connection
from ...etl.factory import PipelineFactory
from ..dependencies import get_optional_pipeline_factory

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthCheck(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str
    database: str
    environment: str


@router.get("/health", response_model=HealthCheck)
async def health_check(factory: Optional[PipelineFactory] = Depends(get_optional_pipeline_factory)):
    """Basic health check endpoint.

    Args:
        factory: Pipeline factory, None when the store is not configured

    Returns:
        HealthCheck: Health check response
    """
    if factory is None:
        db_status = "unconfigured"
    else:
        try:
            healthy = await asyncio.to_thread(lambda: check_db_connection(factory.engine))
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            healthy = False
        db_status = "healthy" if healthy else "unhealthy"

    return HealthCheck(
        status="healthy" if db_status == "healthy" else "unhealthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        database=db_status,
        environment=settings.environment,
    )
