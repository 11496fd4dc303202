"""Configuration package."""

from .settings import Settings, get_settings, settings, DEFAULT_SYSTEM_LANDLORD_ID

__all__ = ["Settings", "get_settings", "settings", "DEFAULT_SYSTEM_LANDLORD_ID"]
