r"""Utility functions for web-service calls."""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "get_correlation_id",
    "log_structured",
    "parse_retry_after",
    "set_correlation_id",
]

from wscall.utils.retry_after import parse_retry_after
from wscall.utils.structured_logging import (
    StructuredFormatter,
    clear_correlation_id,
    get_correlation_id,
    log_structured,
    set_correlation_id,
)
