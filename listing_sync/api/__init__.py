"""HTTP API for triggering imports and syncs."""
