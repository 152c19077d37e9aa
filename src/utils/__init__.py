"""
Utility modules for the Odds Relay.

This package provides logging and metrics infrastructure using structured logging
and OpenTelemetry.
"""

from .logger import OddsRelayLogger, get_logger, relay_logger
from .metrics import OddsRelayMetrics, get_metrics, relay_metrics

__all__ = [
    "get_logger",
    "relay_logger",
    "OddsRelayLogger",
    "get_metrics",
    "relay_metrics",
    "OddsRelayMetrics",
]
