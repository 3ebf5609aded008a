r"""Asynchronous result handle returned by web-service calls.

A ``WSCall`` owns the ``asyncio.Task`` performing one call. It can be
awaited, composed with ``map``/``to_void`` and observed with callbacks
that run on a designated completion context. The caller holding the
handle owns the in-flight call and can cancel it.
"""

from __future__ import annotations

__all__ = ["CompletionContext", "WSCall"]

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine, Generator

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

_THEN = "then"
_ERROR = "error"
_COMPLETE = "complete"


class CompletionContext(Protocol):
    r"""An execution context on which callbacks are delivered.

    Any ``asyncio`` event loop satisfies this protocol.
    """

    def call_soon_threadsafe(self, callback: Callable[..., Any], *args: Any) -> Any: ...


class WSCall(Generic[T]):
    r"""Single-value asynchronous result of a web-service call.

    The call starts running as soon as it is created, so it must be
    created while an event loop is running. It completes exactly once,
    with a value or with an exception.

    Callbacks registered with ``then``, ``on_error`` and
    ``on_complete`` are scheduled on the completion context once the
    call completes (immediately if it already has). Each callback runs
    at most once, and never after ``cancel`` was called.

    Args:
        coro: The coroutine computing the value.
        context: The completion context of the callbacks. Defaults to
            the running event loop.
        source: The call this one was derived from. Cancelling this call
            cancels the source too.

    Example:
        ```pycon
        >>> import asyncio
        >>> from wscall import WSCall
        >>> async def answer():
        ...     return 42
        ...
        >>> async def main():
        ...     call = WSCall(answer()).map(lambda value: value + 1)
        ...     return await call
        ...
        >>> asyncio.run(main())
        43

        ```
    """

    def __init__(
        self,
        coro: Coroutine[Any, Any, T],
        *,
        context: CompletionContext | None = None,
        source: WSCall[Any] | None = None,
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            msg = "WSCall must be created while an event loop is running"
            raise RuntimeError(msg) from None
        self._task: asyncio.Task[T] = loop.create_task(coro)
        self._context: CompletionContext = context if context is not None else loop
        self._source = source
        self._suppressed = False
        self._pending: list[tuple[str, Callable[..., Any]]] = []
        self._task.add_done_callback(self._on_task_done)

    def __await__(self) -> Generator[Any, None, T]:
        return self._task.__await__()

    def __repr__(self) -> str:
        if self._task.cancelled():
            state = "cancelled"
        elif self._task.done():
            state = "failed" if self._task.exception() is not None else "succeeded"
        else:
            state = "pending"
        return f"<{self.__class__.__qualname__} {state}>"

    @property
    def context(self) -> CompletionContext:
        return self._context

    def done(self) -> bool:
        return self._task.done()

    def cancelled(self) -> bool:
        return self._task.cancelled()

    def result(self) -> T:
        r"""Return the value of a completed call.

        Raises:
            asyncio.InvalidStateError: If the call is not done yet.
            asyncio.CancelledError: If the call was cancelled.
            WSError: If the call failed.
        """
        return self._task.result()

    def exception(self) -> BaseException | None:
        return self._task.exception()

    def cancel(self) -> bool:
        r"""Cancel the call.

        Pending work (HTTP exchange or retry delay) is aborted and no
        callback of this call runs afterwards, even one that was already
        scheduled on the completion context.

        Returns:
            ``True`` if the underlying work was still running.
        """
        self._suppressed = True
        self._pending.clear()
        cancelled = self._task.cancel()
        if self._source is not None:
            cancelled = self._source.cancel() or cancelled
        if cancelled:
            logger.debug("Web-service call cancelled")
        return cancelled

    def map(self, transform: Callable[[T], U]) -> WSCall[U]:
        r"""Return a call whose value is ``transform(value)``.

        Failures are passed through unchanged. An exception raised by
        ``transform`` fails the returned call.
        """

        async def _mapped() -> U:
            return transform(await self)

        return WSCall(_mapped(), context=self._context, source=self)

    def to_void(self) -> WSCall[None]:
        r"""Return a call with the same outcome and no value."""
        return self.map(_discard)

    def receive_on(self, context: CompletionContext | None) -> WSCall[T]:
        r"""Return a call with the same outcome whose callbacks run on
        ``context``.

        ``None`` keeps the current context.
        """
        if context is None or context is self._context:
            return self

        async def _same() -> T:
            return await self

        return WSCall(_same(), context=context, source=self)

    def then(self, callback: Callable[[T], Any]) -> WSCall[T]:
        r"""Register a callback receiving the value on success."""
        return self._register(_THEN, callback)

    def on_error(self, callback: Callable[[BaseException], Any]) -> WSCall[T]:
        r"""Register a callback receiving the exception on failure."""
        return self._register(_ERROR, callback)

    def on_complete(self, callback: Callable[[], Any]) -> WSCall[T]:
        r"""Register a callback run after success or failure."""
        return self._register(_COMPLETE, callback)

    def _register(self, kind: str, callback: Callable[..., Any]) -> WSCall[T]:
        if self._suppressed:
            return self
        if self._task.done():
            if not self._task.cancelled():
                self._schedule(kind, callback)
        else:
            self._pending.append((kind, callback))
        return self

    def _on_task_done(self, task: asyncio.Task[T]) -> None:
        if task.cancelled():
            self._pending.clear()
            return
        # retrieve the exception so that asyncio does not report it as unhandled
        task.exception()
        pending, self._pending = self._pending, []
        for kind, callback in pending:
            self._schedule(kind, callback)

    def _schedule(self, kind: str, callback: Callable[..., Any]) -> None:
        self._context.call_soon_threadsafe(self._deliver, kind, callback)

    def _deliver(self, kind: str, callback: Callable[..., Any]) -> None:
        if self._suppressed:
            return
        error = self._task.exception()
        if kind == _THEN and error is None:
            callback(self._task.result())
        elif kind == _ERROR and error is not None:
            callback(error)
        elif kind == _COMPLETE:
            callback()


def _discard(value: Any) -> None:  # noqa: ARG001
    return None
