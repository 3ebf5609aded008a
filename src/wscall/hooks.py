r"""Request adaptation and retry hooks.

A request adapter rewrites each outgoing ``httpx.Request`` before it is
sent. A request retrier decides whether a failed exchange is attempted
again and after which delay. Both hooks may be plain objects or return
awaitables from their method, so that they can perform I/O (e.g.
refreshing an access token).
"""

from __future__ import annotations

__all__ = [
    "BackoffRetrier",
    "BaseRequestAdapter",
    "BaseRequestRetrier",
    "HeadersAdapter",
    "RequestAdapter",
    "RequestRetrier",
    "RetryDecision",
]

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from wscall.backoff import ExponentialBackoff
from wscall.config import DEFAULT_MAX_RETRIES, RETRY_STATUS_CODES, validate_max_retries
from wscall.utils.retry_after import parse_retry_after

if TYPE_CHECKING:
    from collections.abc import Awaitable, Mapping

    import httpx

    from wscall.backoff import BaseBackoffStrategy
    from wscall.exceptions import TransportError

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryDecision:
    r"""The answer of a retrier for one failed attempt.

    Args:
        retry: ``True`` to attempt the request again.
        delay: Seconds to wait before the next attempt.
    """

    retry: bool
    delay: float = 0.0

    @classmethod
    def give_up(cls) -> RetryDecision:
        return cls(retry=False)

    @classmethod
    def retry_after(cls, delay: float) -> RetryDecision:
        return cls(retry=True, delay=delay)


@runtime_checkable
class RequestAdapter(Protocol):
    r"""Anything with an ``adapt`` method can be used as an adapter."""

    def adapt(self, request: httpx.Request) -> httpx.Request | Awaitable[httpx.Request]: ...


@runtime_checkable
class RequestRetrier(Protocol):
    r"""Anything with a ``should_retry`` method can be used as a
    retrier."""

    def should_retry(
        self, request: httpx.Request, error: TransportError, attempt: int
    ) -> RetryDecision | Awaitable[RetryDecision]: ...


class BaseRequestAdapter(ABC):
    """Abstract base class for request adapters."""

    @abstractmethod
    def adapt(self, request: httpx.Request) -> httpx.Request | Awaitable[httpx.Request]:
        """Rewrite an outgoing request.

        The adapter is called before every attempt, including retries.
        Raising any exception aborts the call with ``AdaptationError``.

        Args:
            request: The request about to be sent.

        Returns:
            The request to send, or an awaitable resolving to it. It may
            be the same object, modified in place.
        """


class BaseRequestRetrier(ABC):
    """Abstract base class for request retriers."""

    @abstractmethod
    def should_retry(
        self, request: httpx.Request, error: TransportError, attempt: int
    ) -> RetryDecision | Awaitable[RetryDecision]:
        """Decide whether a failed exchange is attempted again.

        Args:
            request: The request that failed.
            error: The transport error of the failed attempt.
            attempt: The 0-indexed number of the failed attempt.

        Returns:
            The decision, or an awaitable resolving to it.
        """


class HeadersAdapter(BaseRequestAdapter):
    r"""Set fixed headers on every outgoing request.

    Args:
        headers: The headers to set. They replace headers of the same
            name already present on the request.

    Example:
        ```pycon
        >>> import httpx
        >>> from wscall.hooks import HeadersAdapter
        >>> adapter = HeadersAdapter({"Authorization": "Bearer abc"})
        >>> request = adapter.adapt(httpx.Request("GET", "http://api.test/users"))
        >>> request.headers["authorization"]
        'Bearer abc'

        ```
    """

    def __init__(self, headers: Mapping[str, str]) -> None:
        self.headers = dict(headers)

    def adapt(self, request: httpx.Request) -> httpx.Request:
        request.headers.update(self.headers)
        return request


class BackoffRetrier(BaseRequestRetrier):
    r"""Retry timeouts, connection errors and retryable status codes.

    The delay comes from the ``Retry-After`` response header when the
    server sends one, otherwise from the backoff strategy.

    Args:
        max_retries: Maximum number of retries. Must be >= 0.
        backoff_strategy: The backoff strategy. Defaults to
            ``ExponentialBackoff()``.
        status_forcelist: Status codes that are retried.
        max_wait_time: Optional cap in seconds applied to every delay.

    Example:
        ```pycon
        >>> import httpx
        >>> from wscall.exceptions import TransportError
        >>> from wscall.hooks import BackoffRetrier
        >>> retrier = BackoffRetrier(max_retries=1)
        >>> request = httpx.Request("GET", "http://api.test/users")
        >>> error = TransportError("timed out", timed_out=True)
        >>> retrier.should_retry(request, error, attempt=0)
        RetryDecision(retry=True, delay=0.3)
        >>> retrier.should_retry(request, error, attempt=1)
        RetryDecision(retry=False, delay=0.0)

        ```
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_strategy: BaseBackoffStrategy | None = None,
        status_forcelist: tuple[int, ...] = RETRY_STATUS_CODES,
        max_wait_time: float | None = None,
    ) -> None:
        validate_max_retries(max_retries)
        if max_wait_time is not None and max_wait_time <= 0:
            msg = f"max_wait_time must be > 0, got {max_wait_time}"
            raise ValueError(msg)
        self.max_retries = max_retries
        self.backoff_strategy = backoff_strategy or ExponentialBackoff()
        self.status_forcelist = status_forcelist
        self.max_wait_time = max_wait_time

    def should_retry(
        self,
        request: httpx.Request,
        error: TransportError,
        attempt: int,
    ) -> RetryDecision:
        if attempt >= self.max_retries:
            logger.debug(f"{request.method} {request.url}: max retries exhausted")
            return RetryDecision.give_up()
        if error.status_code is not None and error.status_code not in self.status_forcelist:
            logger.debug(
                f"{request.method} {request.url}: status {error.status_code} is not retryable"
            )
            return RetryDecision.give_up()

        delay: float | None = None
        if error.response is not None:
            delay = parse_retry_after(error.response.headers.get("Retry-After"))
            if delay is not None:
                logger.debug(f"Using Retry-After header value: {delay:.2f}s")
        if delay is None:
            delay = self.backoff_strategy.calculate(attempt)
        if self.max_wait_time is not None:
            delay = min(delay, self.max_wait_time)
        return RetryDecision.retry_after(delay)
