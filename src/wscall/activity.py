r"""Network activity indicator shared by the requests of a client."""

from __future__ import annotations

__all__ = ["NetworkActivityIndicator"]

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger: logging.Logger = logging.getLogger(__name__)


class NetworkActivityIndicator:
    r"""Track whether at least one HTTP exchange is in flight.

    A UI can register a listener to show a spinner while ``active`` is
    ``True``. Listeners are called with the new state each time it
    changes. A failing listener is logged and never affects the calls.

    Example:
        ```pycon
        >>> from wscall.activity import NetworkActivityIndicator
        >>> indicator = NetworkActivityIndicator()
        >>> states = []
        >>> indicator.add_listener(states.append)
        >>> with indicator.exchange():
        ...     indicator.active
        ...
        True
        >>> indicator.active
        False
        >>> states
        [True, False]

        ```
    """

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()
        self._listeners: list[Callable[[bool], None]] = []

    @property
    def active(self) -> bool:
        return self._count > 0

    def add_listener(self, listener: Callable[[bool], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[bool], None]) -> None:
        self._listeners.remove(listener)

    def increment(self) -> None:
        with self._lock:
            self._count += 1
            changed = self._count == 1
        if changed:
            self._notify(True)

    def decrement(self) -> None:
        with self._lock:
            if self._count == 0:
                return
            self._count -= 1
            changed = self._count == 0
        if changed:
            self._notify(False)

    @contextmanager
    def exchange(self) -> Iterator[None]:
        r"""Mark an exchange as in flight for the duration of the block."""
        self.increment()
        try:
            yield
        finally:
            self.decrement()

    def _notify(self, active: bool) -> None:
        for listener in list(self._listeners):
            try:
                listener(active)
            except Exception:
                logger.warning("Network activity listener failed", exc_info=True)
