r"""Unit tests for the WS client, its request factories and its typed
calls."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING
from unittest.mock import Mock

import httpx
import pytest

from tests.helpers import BASE_URL, RecordingContext, drain, json_response
from wscall import (
    JSON,
    WS,
    ApplicationError,
    HeadersAdapter,
    HTTPVerb,
    LogLevel,
    ParameterEncoding,
    ParsingError,
    ShapeError,
    TransportError,
    WSRequest,
)

if TYPE_CHECKING:
    from collections.abc import Callable


def echo(request: httpx.Request) -> httpx.Response:
    return json_response({"method": request.method, "url": str(request.url)})


########################
#     Tests for WS     #
########################


def test_ws_defaults() -> None:
    """Test the default configuration of a new client."""
    ws = WS(BASE_URL)
    assert ws.base_url == BASE_URL
    assert ws.timeout == 10.0
    assert ws.headers == {}
    assert ws.default_collection_parsing_key_path is None
    assert ws.log_level is LogLevel.OFF
    assert ws.post_parameter_encoding is ParameterEncoding.URL
    assert ws.shows_network_activity_indicator
    assert not ws.network_activity.active
    assert ws.error_handler is None
    assert ws.request_adapter is None
    assert ws.request_retrier is None
    assert ws.completion_context is None


@pytest.mark.parametrize("timeout", [0, -1.0])
def test_ws_invalid_timeout(timeout: float) -> None:
    with pytest.raises(ValueError, match=r"timeout must be > 0"):
        WS(BASE_URL, timeout=timeout)


@pytest.mark.asyncio
async def test_ws_default_call_copies_configuration() -> None:
    """Test that default_call copies every client default into the
    request."""
    async with WS(BASE_URL, timeout=3.0) as ws:
        ws.headers["Accept"] = "application/json"
        ws.default_collection_parsing_key_path = "data"
        ws.log_level = LogLevel.CALLS
        ws.post_parameter_encoding = ParameterEncoding.JSON
        ws.shows_network_activity_indicator = False
        ws.error_handler = handler = Mock()
        ws.request_adapter = adapter = HeadersAdapter({"X-A": "1"})
        ws.request_retrier = retrier = Mock()

        request = ws.default_call()
        assert isinstance(request, WSRequest)
        assert request.base_url == BASE_URL
        assert request.default_headers == {"Accept": "application/json"}
        assert request.default_collection_parsing_key_path == "data"
        assert request.log_level is LogLevel.CALLS
        assert request.post_parameter_encoding is ParameterEncoding.JSON
        assert not request.shows_network_activity_indicator
        assert request.network_activity is ws.network_activity
        assert request.error_handler is handler
        assert request.request_adapter is adapter
        assert request.request_retrier is retrier
        assert request.timeout == 3.0
        assert request.client is not None


@pytest.mark.asyncio
async def test_ws_later_changes_do_not_affect_request(make_ws: Callable) -> None:
    """Test that client changes after a request is created are not seen
    by that request."""
    ws, transport = make_ws(echo)
    ws.headers["X-Version"] = "1"
    request = ws.get_request("/users")
    ws.headers["X-Version"] = "2"
    ws.log_level = LogLevel.CALLS_AND_RESPONSES
    await request.fetch()
    assert transport.requests[0].headers["x-version"] == "1"
    assert request.log_level is LogLevel.OFF


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("factory", "verb"),
    [
        ("get_request", HTTPVerb.GET),
        ("post_request", HTTPVerb.POST),
        ("put_request", HTTPVerb.PUT),
        ("delete_request", HTTPVerb.DELETE),
    ],
)
async def test_ws_request_factories(make_ws: Callable, factory: str, verb: HTTPVerb) -> None:
    """Test that each factory configures an unfetched request."""
    ws, _ = make_ws(echo)
    request = getattr(ws, factory)("/users/1", {"a": 1})
    assert request.http_verb is verb
    assert request.url == "/users/1"
    assert request.params == {"a": 1}
    assert request.resolved_url == "http://api.test/users/1"
    assert not request.fetched


@pytest.mark.asyncio
async def test_ws_call_uses_verb(make_ws: Callable) -> None:
    ws, _ = make_ws(echo)
    request = ws.call("/users", "PUT")
    assert request.http_verb is HTTPVerb.PUT


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["get", "post", "put", "delete"])
async def test_ws_json_calls(make_ws: Callable, method: str) -> None:
    """Test that JSON calls return the decoded body."""
    ws, transport = make_ws(echo)
    body = await getattr(ws, method)("/users")
    assert body["method"].as_str() == method.upper()
    assert body["url"].as_str() == "http://api.test/users"
    assert len(transport.requests) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["get", "post", "put", "delete"])
async def test_ws_void_calls(make_ws: Callable, method: str) -> None:
    """Test that void calls succeed with no value."""
    ws, transport = make_ws(echo)
    assert await getattr(ws, f"{method}_void")("/users") is None
    assert transport.requests[0].method == method.upper()


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["get", "post", "put", "delete"])
async def test_ws_void_and_json_agree_on_success(make_ws: Callable, method: str) -> None:
    ws, _ = make_ws(echo)
    json_result = getattr(ws, method)("/users")
    void_result = getattr(ws, f"{method}_void")("/users")
    await asyncio.gather(json_result, void_result)
    assert json_result.exception() is None
    assert void_result.exception() is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("handler", "key_path", "error"),
    [
        (lambda r: json_response({"error": "boom"}, 500), None, TransportError),
        (lambda r: httpx.Response(200, content=b"not json"), None, ParsingError),
        (lambda r: httpx.Response(200), None, ParsingError),
        (lambda r: json_response({"data": {}}), "data", ShapeError),
    ],
)
async def test_ws_void_and_json_agree_on_failure(
    make_ws: Callable,
    handler: Callable[[httpx.Request], httpx.Response],
    key_path: str | None,
    error: type[Exception],
) -> None:
    """Test that a void call fails whenever the JSON call fails, with
    the same error kind."""
    ws, _ = make_ws(handler)
    ws.default_collection_parsing_key_path = key_path
    with pytest.raises(error):
        await ws.get("/users")
    with pytest.raises(error):
        await ws.get_void("/users")


@pytest.mark.asyncio
async def test_ws_error_handler_applies_to_calls(make_ws: Callable) -> None:
    """Test that the client error handler applies to JSON and void
    calls."""
    ws, _ = make_ws(lambda r: json_response({"error": {"message": "Server error"}}))
    ws.error_handler = lambda body: body.at_path("error.message").as_str()
    with pytest.raises(ApplicationError, match=r"Server error"):
        await ws.get("/users")
    with pytest.raises(ApplicationError, match=r"Server error"):
        await ws.delete_void("/users/1")


@pytest.mark.asyncio
async def test_ws_default_collection_key_path(make_ws: Callable) -> None:
    ws, _ = make_ws(lambda r: json_response({"data": [{"id": 1}, {"id": 2}]}))
    ws.default_collection_parsing_key_path = "data"
    body = await ws.get("/users")
    assert [item["id"].as_int() for item in body["data"].items()] == [1, 2]


@pytest.mark.asyncio
async def test_ws_post_json_encoding(make_ws: Callable) -> None:
    """Test that the client parameter encoding applies to POST calls."""
    ws, transport = make_ws(echo)
    ws.post_parameter_encoding = ParameterEncoding.JSON
    await ws.post("/users", {"name": "ann", "tags": ["a"]})
    sent = transport.requests[0]
    assert sent.headers["content-type"] == "application/json"
    assert json.loads(sent.content) == {"name": "ann", "tags": ["a"]}


@pytest.mark.asyncio
@pytest.mark.parametrize(("method", "verb"), [("post_multipart", "POST"), ("put_multipart", "PUT")])
async def test_ws_multipart_calls(make_ws: Callable, method: str, verb: str) -> None:
    """Test that multipart calls upload the file part with the params."""
    ws, transport = make_ws(echo)
    body = await getattr(ws, method)(
        "/photos",
        {"title": "cat"},
        name="photo",
        data=b"JPEGDATA",
        file_name="cat.jpg",
        mime_type="image/jpeg",
    )
    assert body["method"].as_str() == verb
    sent = transport.requests[0]
    assert sent.headers["content-type"].startswith("multipart/form-data; boundary=")
    assert b'filename="cat.jpg"' in sent.content
    assert b'name="title"' in sent.content


@pytest.mark.asyncio
async def test_ws_multipart_request_factories(make_ws: Callable) -> None:
    ws, _ = make_ws(echo)
    request = ws.put_multipart_request(
        "/photos/1", name="photo", data=b"x", file_name="a.png", mime_type="image/png"
    )
    assert request.http_verb is HTTPVerb.PUT
    assert request.multipart_file.filename == "a.png"
    assert request.multipart_file.mime_type == "image/png"
    request = ws.post_multipart_request(
        "/photos", name="photo", data=b"x", file_name="a.png", mime_type="image/png"
    )
    assert request.http_verb is HTTPVerb.POST
    assert request.multipart_file.name == "photo"


@pytest.mark.asyncio
async def test_ws_completion_context(make_ws: Callable) -> None:
    """Test that callbacks are scheduled on the client completion
    context."""
    ws, _ = make_ws(echo)
    context = RecordingContext(asyncio.get_running_loop())
    ws.completion_context = context
    results = []
    call = ws.get_void("/users").then(results.append)
    assert call.context is context
    await call
    await drain()
    assert results == [None]
    assert context.scheduled == 1


@pytest.mark.asyncio
async def test_ws_callbacks_default_to_running_loop(make_ws: Callable) -> None:
    ws, _ = make_ws(echo)
    results = []
    call = ws.get("/users").then(results.append)
    assert call.context is asyncio.get_running_loop()
    await call
    await drain()
    assert results == [JSON({"method": "GET", "url": "http://api.test/users"})]


@pytest.mark.asyncio
async def test_ws_cancel_call(make_ws: Callable) -> None:
    """Test that a cancelled void call never completes its callbacks."""

    async def never(request: httpx.Request) -> httpx.Response:
        await asyncio.Event().wait()
        return json_response({})

    ws, _ = make_ws(never)
    on_complete = Mock()
    call = ws.post_void("/users").on_complete(on_complete)
    await asyncio.sleep(0)
    assert call.cancel()
    await drain()
    assert call.cancelled()
    on_complete.assert_not_called()


@pytest.mark.asyncio
async def test_ws_aclose_closes_owned_client() -> None:
    """Test that aclose closes the client created by WS and that a new
    one is created afterwards."""
    ws = WS(BASE_URL)
    client = ws.get_request("/users").client
    assert not client.is_closed
    await ws.aclose()
    assert client.is_closed
    assert ws.get_request("/users").client is not client
    await ws.aclose()


@pytest.mark.asyncio
async def test_ws_request_created_before_aclose_fails() -> None:
    """Test that a request whose client was closed fails with
    TransportError."""
    ws = WS(BASE_URL)
    request = ws.get_request("/users")
    await ws.aclose()
    with pytest.raises(TransportError, match=r"the httpx client is closed"):
        await request.fetch()


@pytest.mark.asyncio
async def test_ws_aclose_keeps_injected_client() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(echo))
    async with WS(BASE_URL, client=client) as ws:
        assert ws.get_request("/users").client is client
    assert not client.is_closed
    await client.aclose()


def test_ws_json_parsing_collection_key_is_deprecated() -> None:
    """Test that the deprecated alias warns and forwards to
    default_collection_parsing_key_path."""
    ws = WS(BASE_URL)
    with pytest.warns(DeprecationWarning, match=r"default_collection_parsing_key_path"):
        ws.json_parsing_collection_key = "items"
    assert ws.default_collection_parsing_key_path == "items"
    with pytest.warns(DeprecationWarning):
        assert ws.json_parsing_collection_key == "items"
