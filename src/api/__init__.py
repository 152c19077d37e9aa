"""
API integration modules for external services.

This package provides the client for the fetch relay that reaches the
upstream odds API.
"""

from .relay_client import (
    FetchResult,
    ParseError,
    RelayClient,
    RelayError,
    ShapeError,
    UpstreamFetchError,
    fetch_raw,
)

__all__ = [
    "FetchResult",
    "ParseError",
    "RelayClient",
    "RelayError",
    "ShapeError",
    "UpstreamFetchError",
    "fetch_raw",
]
