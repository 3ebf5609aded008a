r"""Shared test helpers for the web-service client tests."""

from __future__ import annotations

__all__ = [
    "BASE_URL",
    "RecordingContext",
    "RecordingTransport",
    "drain",
    "json_response",
]

import asyncio
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from collections.abc import Callable

BASE_URL = "http://api.test"


class RecordingTransport(httpx.MockTransport):
    """Mock transport remembering every request it receives."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> Any:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


class RecordingContext:
    """Completion context counting the callbacks it schedules."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop
        self.scheduled = 0

    def call_soon_threadsafe(self, callback: Callable[..., Any], *args: Any) -> Any:
        self.scheduled += 1
        return self.loop.call_soon_threadsafe(callback, *args)


async def drain() -> None:
    """Let the event loop run the callbacks scheduled so far."""
    for _ in range(5):
        await asyncio.sleep(0)


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)
