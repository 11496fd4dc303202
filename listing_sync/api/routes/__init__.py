"""API route modules."""

from . import health, scraper

__all__ = ["health", "scraper"]
