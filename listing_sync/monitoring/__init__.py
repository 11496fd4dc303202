"""Monitoring and logging package."""

from .logger import setup_logging, SyncLogger

__all__ = ["setup_logging", "SyncLogger"]
