"""Shared utilities."""

from .http import HTTPClient, error_for_status, parse_retry_after

__all__ = ["HTTPClient", "error_for_status", "parse_retry_after"]
