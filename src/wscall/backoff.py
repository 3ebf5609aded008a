r"""Backoff strategies used to space out retries.

A backoff strategy maps the 0-indexed attempt number of a failed request
to the number of seconds to wait before the next attempt.
"""

from __future__ import annotations

__all__ = ["BaseBackoffStrategy", "ConstantBackoff", "ExponentialBackoff", "LinearBackoff"]

from abc import ABC, abstractmethod


class BaseBackoffStrategy(ABC):
    """Abstract base class for backoff strategies."""

    @abstractmethod
    def calculate(self, attempt: int) -> float:
        """Calculate the backoff delay for a given retry attempt.

        Args:
            attempt: The 0-indexed number of the attempt that failed.

        Returns:
            The delay in seconds before the next attempt.
        """


def _check_max_delay(max_delay: float | None) -> None:
    if max_delay is not None and max_delay <= 0:
        msg = f"max_delay must be positive if specified, got {max_delay}"
        raise ValueError(msg)


class ConstantBackoff(BaseBackoffStrategy):
    """Wait the same delay before every retry.

    Args:
        delay: The delay in seconds (default: 1.0).

    Example:
        ```pycon
        >>> from wscall.backoff import ConstantBackoff
        >>> ConstantBackoff(delay=2.5).calculate(10)
        2.5

        ```
    """

    def __init__(self, delay: float = 1.0) -> None:
        if delay < 0:
            msg = f"delay must be non-negative, got {delay}"
            raise ValueError(msg)
        self.delay = delay

    def calculate(self, attempt: int) -> float:  # noqa: ARG002
        return self.delay


class LinearBackoff(BaseBackoffStrategy):
    """Wait ``base_delay * (attempt + 1)`` seconds, optionally capped.

    Args:
        base_delay: The delay added at each attempt (default: 1.0).
        max_delay: Optional maximum delay in seconds.

    Example:
        ```pycon
        >>> from wscall.backoff import LinearBackoff
        >>> backoff = LinearBackoff(base_delay=0.5, max_delay=1.2)
        >>> [backoff.calculate(i) for i in range(3)]
        [0.5, 1.0, 1.2]

        ```
    """

    def __init__(self, base_delay: float = 1.0, max_delay: float | None = None) -> None:
        if base_delay < 0:
            msg = f"base_delay must be non-negative, got {base_delay}"
            raise ValueError(msg)
        _check_max_delay(max_delay)
        self.base_delay = base_delay
        self.max_delay = max_delay

    def calculate(self, attempt: int) -> float:
        delay = self.base_delay * (attempt + 1)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


class ExponentialBackoff(BaseBackoffStrategy):
    """Wait ``base_delay * 2 ** attempt`` seconds, optionally capped.

    This is the default strategy of ``BackoffRetrier``.

    Args:
        base_delay: The delay of the first retry (default: 0.3).
        max_delay: Optional maximum delay in seconds.

    Example:
        ```pycon
        >>> from wscall.backoff import ExponentialBackoff
        >>> backoff = ExponentialBackoff(base_delay=0.3)
        >>> backoff.calculate(0)
        0.3
        >>> backoff.calculate(2)
        1.2
        >>> ExponentialBackoff(base_delay=1.0, max_delay=5.0).calculate(10)
        5.0

        ```
    """

    def __init__(self, base_delay: float = 0.3, max_delay: float | None = None) -> None:
        if base_delay < 0:
            msg = f"base_delay must be non-negative, got {base_delay}"
            raise ValueError(msg)
        _check_max_delay(max_delay)
        self.base_delay = base_delay
        self.max_delay = max_delay

    def calculate(self, attempt: int) -> float:
        delay = self.base_delay * (2**attempt)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay
