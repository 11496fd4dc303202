"""Exception hierarchy for the listing sync pipeline."""


class ListingSyncError(Exception):
    """Base error for the listing sync pipeline."""


class ConfigurationError(ListingSyncError):
    """Required configuration is missing or invalid."""


class StoreError(ListingSyncError):
    """A property store operation failed."""


class StorageError(ListingSyncError):
    """An object store operation failed."""
