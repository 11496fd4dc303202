"""Scraped rental listing import and incremental sync pipeline."""

__version__ = "1.0.0"
