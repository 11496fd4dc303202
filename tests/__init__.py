"""Tests for listing_sync."""
