from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import pytest

from tests.helpers import BASE_URL, RecordingTransport
from wscall import WS

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def make_ws() -> Callable[..., tuple[WS, RecordingTransport]]:
    """Return a factory creating a ``WS`` client whose requests are
    answered by ``handler`` through a ``RecordingTransport``."""

    def _make(handler: Callable[[httpx.Request], Any]) -> tuple[WS, RecordingTransport]:
        transport = RecordingTransport(handler)
        client = httpx.AsyncClient(transport=transport)
        return WS(BASE_URL, client=client), transport

    return _make
