r"""wscall - Asynchronous JSON web-service client built on httpx.

This package provides a thin layer over ``httpx`` for calling JSON web
services. A ``WS`` client holds the configuration shared by all the calls
to one backend (base URL, headers, hooks, logging) and exposes one method
per HTTP verb. Each call returns a ``WSCall``, an awaitable handle that
can be composed, observed with callbacks and cancelled.

Key Features:
    - Verb-based calls returning the decoded JSON body or no value
    - Multipart uploads of one file part
    - Request adapter and retrier hooks, with a backoff retrier included
    - Application-level error extraction from successful responses
    - Validation of the array at a collection key path
    - Callbacks delivered on a designated completion context
    - Optional call and response logging

Example:
    ```pycon
    >>> import asyncio
    >>> from wscall import WS, BackoffRetrier
    >>> async def main():  # doctest: +SKIP
    ...     async with WS("https://api.example.com") as ws:
    ...         ws.headers["Accept"] = "application/json"
    ...         ws.request_retrier = BackoffRetrier(max_retries=2)
    ...         users = await ws.get("/users", {"page": 1})
    ...         await ws.post_void("/users", {"name": "ann"})
    ...     return users
    ...
    >>> asyncio.run(main())  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "JSON",
    "WS",
    "AdaptationError",
    "ApplicationError",
    "BackoffRetrier",
    "BaseRequestAdapter",
    "BaseRequestRetrier",
    "HTTPVerb",
    "HeadersAdapter",
    "JSONKind",
    "LogLevel",
    "MultipartFile",
    "NetworkActivityIndicator",
    "ParameterEncoding",
    "Params",
    "ParsingError",
    "RetryDecision",
    "ShapeError",
    "TransportError",
    "WSCall",
    "WSError",
    "WSRequest",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from wscall.activity import NetworkActivityIndicator
from wscall.call import WSCall
from wscall.client import WS
from wscall.config import HTTPVerb, LogLevel, ParameterEncoding
from wscall.exceptions import (
    AdaptationError,
    ApplicationError,
    ParsingError,
    ShapeError,
    TransportError,
    WSError,
)
from wscall.hooks import (
    BackoffRetrier,
    BaseRequestAdapter,
    BaseRequestRetrier,
    HeadersAdapter,
    RetryDecision,
)
from wscall.jsonvalue import JSON, JSONKind
from wscall.params import MultipartFile, Params
from wscall.request import WSRequest

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
