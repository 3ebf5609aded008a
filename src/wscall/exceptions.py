r"""Define the exceptions that terminate a web-service call.

Every failure delivered by a ``WSCall`` is an instance of ``WSError``.
The subclass tells at which stage of the call the failure happened.
"""

from __future__ import annotations

__all__ = [
    "AdaptationError",
    "ApplicationError",
    "ParsingError",
    "ShapeError",
    "TransportError",
    "WSError",
]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx


class WSError(Exception):
    r"""Base class of all the errors raised by a web-service call.

    Args:
        message: A human-readable description of the failure.
        method: The HTTP method of the call, if known.
        url: The resolved URL of the call, if known.
        status_code: The HTTP status code, if a response was received.
        response: The ``httpx.Response`` object, if available.
        cause: The underlying exception, if any.

    Example:
        ```pycon
        >>> from wscall.exceptions import WSError
        >>> error = WSError("boom", method="GET", url="http://api.test/users")
        >>> error.method
        'GET'
        >>> str(error)
        'boom'

        ```
    """

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
        response: httpx.Response | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response = response
        self.cause = cause


class AdaptationError(WSError):
    r"""Raised when the request adapter fails to rewrite a request."""


class TransportError(WSError):
    r"""Raised when the HTTP exchange fails.

    This covers timeouts, connection errors and responses whose status
    code is outside the 2xx range.

    Args:
        message: A human-readable description of the failure.
        timed_out: ``True`` if the exchange failed because of a timeout.
        **kwargs: See ``WSError``.
    """

    def __init__(self, message: str, *, timed_out: bool = False, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.timed_out = timed_out


class ParsingError(WSError):
    r"""Raised when a response body is not valid JSON."""


class ShapeError(WSError):
    r"""Raised when the value at the collection key path is not an
    array.

    Args:
        message: A human-readable description of the failure.
        key_path: The collection key path that was checked.
        **kwargs: See ``WSError``.
    """

    def __init__(self, message: str, *, key_path: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.key_path = key_path


class ApplicationError(WSError):
    r"""Raised when the error handler finds an application-level error in
    a successful response.

    Args:
        message: A human-readable description of the failure.
        error: The value returned by the error handler.
        **kwargs: See ``WSError``.
    """

    def __init__(self, message: str, *, error: Any = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.error = error
