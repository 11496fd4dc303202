"""Shared FastAPI dependencies."""

import logging
from typing import Optional

from fastapi import Depends, HTTPException

from ..config import settings
from ..etl.factory import PipelineFactory
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_factory: Optional[PipelineFactory] = None


def get_optional_pipeline_factory() -> Optional[PipelineFactory]:
    """Return the process-wide pipeline factory, or None when unconfigured."""
    global _factory
    if _factory is None:
        try:
            settings.require_store_config()
        except ConfigurationError as e:
            logger.error(f"Pipeline unavailable: {e}")
            return None
        _factory = PipelineFactory(settings)
    return _factory


def get_pipeline_factory(
    factory: Optional[PipelineFactory] = Depends(get_optional_pipeline_factory),
) -> PipelineFactory:
    if factory is None:
        try:
            settings.require_store_config()
        except ConfigurationError as e:
            raise HTTPException(status_code=500, detail=str(e))
        raise HTTPException(status_code=500, detail="Pipeline is not configured")
    return factory
