"""Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import settings
from ..monitoring.logger import setup_logging
from .routes import health, scraper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup."""
    setup_logging(settings.log_file, settings.log_level)
    logger.info("Starting Listing Sync API...")
    yield
    logger.info("Shutting down Listing Sync API...")


# Create FastAPI app
app = FastAPI(
    title="Listing Sync API",
    description="Import and sync scraped rental listings",
    version=__version__,
    docs_url="/docs" if settings.api.api_debug else None,
    redoc_url="/redoc" if settings.api.api_debug else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to responses."""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = str(time.time() - start_time)
    return response


@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    """Handle 404 errors."""
    return JSONResponse(
        status_code=404,
        content={"detail": getattr(exc, "detail", None) or "Resource not found"}
    )


# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(scraper.router, prefix="/api/v1/scraper", tags=["scraper"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Listing Sync API",
        "version": __version__,
        "docs_url": "/docs" if settings.api.api_debug else None
    }


def serve() -> None:
    """Run the API with uvicorn."""
    uvicorn.run(
        "listing_sync.api.main:app",
        host=settings.api.api_host,
        port=settings.api.api_port,
        reload=settings.api.api_debug,
    )


if __name__ == "__main__":
    serve()
