"""Utility functions and helpers."""

from qcard_api.utils.clock import as_utc, utcnow
from qcard_api.utils.logging import JSONFormatter, configure_json_logging

__all__ = [
    "as_utc",
    "utcnow",
    "JSONFormatter",
    "configure_json_logging",
]
