"""Object storage package."""

from .object_store import ObjectStore, GCSObjectStore

__all__ = ["ObjectStore", "GCSObjectStore"]
