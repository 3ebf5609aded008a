r"""Retry-After header parsing.

The header value is either a number of seconds or an HTTP-date (RFC
7231).
"""

from __future__ import annotations

__all__ = ["parse_retry_after"]

import logging
from contextlib import suppress
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

logger: logging.Logger = logging.getLogger(__name__)


def parse_retry_after(retry_after_header: str | None) -> float | None:
    """Return the number of seconds requested by a Retry-After header.

    Args:
        retry_after_header: The header value, or ``None`` if the response
            has no such header.

    Returns:
        The delay in seconds, or ``None`` if the header is absent or
        cannot be parsed. Dates in the past give ``0.0``.

    Example:
        ```pycon
        >>> from wscall.utils import parse_retry_after
        >>> parse_retry_after("120")
        120.0
        >>> parse_retry_after("soon") is None
        True

        ```
    """
    if retry_after_header is None:
        return None

    with suppress(ValueError):
        return max(0.0, float(retry_after_header))

    try:
        retry_date: datetime = parsedate_to_datetime(retry_after_header)
    except (ValueError, TypeError, OverflowError):
        logger.debug(f"Failed to parse Retry-After header: {retry_after_header!r}")
        return None
    if retry_date.tzinfo is None:
        retry_date = retry_date.replace(tzinfo=timezone.utc)
    return max(0.0, (retry_date - datetime.now(timezone.utc)).total_seconds())
