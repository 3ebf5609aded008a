r"""Configuration enums, defaults and validation for web-service calls.

This module provides the enumerations and default values shared by the
``WS`` client and the ``WSRequest`` objects it creates.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_TIMEOUT",
    "EMPTY_BODY_STATUS_CODES",
    "RETRY_STATUS_CODES",
    "HTTPVerb",
    "LogLevel",
    "ParameterEncoding",
    "validate_max_retries",
    "validate_timeout",
]

from enum import Enum, IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


# Default timeout in seconds for HTTP requests
DEFAULT_TIMEOUT = 10.0

# Default maximum number of retries of the bundled BackoffRetrier
# Total attempts = max_retries + 1 (initial attempt)
DEFAULT_MAX_RETRIES = 3

# HTTP status codes that the bundled BackoffRetrier retries
# 429: Too Many Requests - Rate limiting
# 500: Internal Server Error - Temporary server issue
# 502: Bad Gateway - Upstream server error
# 503: Service Unavailable - Server overloaded or down
# 504: Gateway Timeout - Upstream server timeout
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

# Status codes for which an empty body is a valid JSON null
# 204: No Content
# 205: Reset Content
EMPTY_BODY_STATUS_CODES = (204, 205)


class HTTPVerb(str, Enum):
    r"""HTTP methods supported by ``WSRequest``."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @property
    def sends_body(self) -> bool:
        r"""``True`` if the parameters go in the request body instead of
        the query string."""
        return self in (HTTPVerb.POST, HTTPVerb.PUT)


class LogLevel(IntEnum):
    r"""Verbosity of the call logging.

    ``OFF`` logs nothing, ``CALLS`` logs outgoing requests and
    ``CALLS_AND_RESPONSES`` additionally logs the received responses.
    """

    OFF = 0
    CALLS = 1
    CALLS_AND_RESPONSES = 2


class ParameterEncoding(str, Enum):
    r"""How parameters of POST and PUT requests are serialized.

    ``URL`` sends a ``application/x-www-form-urlencoded`` body and
    ``JSON`` sends a ``application/json`` body.
    """

    URL = "url"
    JSON = "json"


def validate_timeout(timeout: float | httpx.Timeout) -> None:
    """Validate timeout parameter.

    Args:
        timeout: Maximum seconds to wait for server responses.
            Must be > 0 if provided as a numeric value.

    Raises:
        ValueError: If timeout is a numeric value <= 0.

    Example:
        ```pycon
        >>> from wscall.config import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(0)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: timeout must be > 0, got 0

        ```
    """
    if isinstance(timeout, (int, float)) and timeout <= 0:
        msg = f"timeout must be > 0, got {timeout}"
        raise ValueError(msg)


def validate_max_retries(max_retries: int) -> None:
    """Validate the maximum number of retries.

    Args:
        max_retries: Maximum number of retry attempts. Must be >= 0.

    Raises:
        ValueError: If max_retries is negative.
    """
    if max_retries < 0:
        msg = f"max_retries must be >= 0, got {max_retries}"
        raise ValueError(msg)
