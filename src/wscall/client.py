r"""Web-service client holding the configuration shared by its calls.

``WS`` is usually created once per backend. Its attributes are the
defaults copied into every ``WSRequest`` it creates; changing them later
does not affect requests that already exist.
"""

from __future__ import annotations

__all__ = ["WS"]

import logging
import warnings
from typing import TYPE_CHECKING, Any

import httpx

from wscall.activity import NetworkActivityIndicator
from wscall.config import DEFAULT_TIMEOUT, HTTPVerb, LogLevel, ParameterEncoding, validate_timeout
from wscall.params import MultipartFile
from wscall.request import WSRequest

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType
    from typing import Self

    from wscall.call import CompletionContext, WSCall
    from wscall.hooks import RequestAdapter, RequestRetrier
    from wscall.jsonvalue import JSON

logger: logging.Logger = logging.getLogger(__name__)


class WS:
    r"""Asynchronous web-service client.

    Args:
        base_url: Prefix joined with the URL of every call, e.g.
            ``"http://jsonplaceholder.typicode.com"``.
        client: Optional ``httpx.AsyncClient`` used to send the
            requests. Its lifecycle stays with the caller. If ``None``,
            the client creates one on first use and closes it in
            ``aclose``.
        timeout: Default timeout of each attempt. Must be > 0.

    Attributes:
        headers: Headers sent with every request.
        default_collection_parsing_key_path: Key path where bodies must
            hold an array, unless the request sets its own.
        log_level: Verbosity of the call logging.
        post_parameter_encoding: Body encoding of POST and PUT params.
        shows_network_activity_indicator: If ``True``, exchanges are
            reported to ``network_activity``.
        network_activity: Indicator tracking in-flight exchanges.
        error_handler: Optional function returning an application error
            found in a decoded body, or ``None``. For example it can
            turn ``{"error": {"code": 1, "message": "Server error"}}``
            into an exception.
        request_adapter: Optional hook rewriting outgoing requests.
        request_retrier: Optional hook deciding retries.
        completion_context: Where the callbacks of the calls run.
            ``None`` means the event loop making the call.

    Example:
        ```pycon
        >>> import asyncio
        >>> from wscall import WS
        >>> async def main():  # doctest: +SKIP
        ...     async with WS("http://jsonplaceholder.typicode.com") as ws:
        ...         users = await ws.get("/users")
        ...         await ws.delete_void("/users/1")
        ...     return users[0]["name"].as_str()
        ...
        >>> asyncio.run(main())  # doctest: +SKIP
        'Leanne Graham'

        ```
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | httpx.Timeout = DEFAULT_TIMEOUT,
    ) -> None:
        validate_timeout(timeout)
        self.base_url = base_url
        self.timeout = timeout
        self.headers: dict[str, str] = {}
        self.default_collection_parsing_key_path: str | None = None
        self.log_level = LogLevel.OFF
        self.post_parameter_encoding = ParameterEncoding.URL
        self.shows_network_activity_indicator = True
        self.network_activity = NetworkActivityIndicator()
        self.error_handler: Callable[[JSON], Any] | None = None
        self.request_adapter: RequestAdapter | None = None
        self.request_retrier: RequestRetrier | None = None
        self.completion_context: CompletionContext | None = None
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        r"""Close the ``httpx.AsyncClient`` created by this client.

        An injected client is left open.
        """
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def json_parsing_collection_key(self) -> str | None:
        r"""Deprecated alias of ``default_collection_parsing_key_path``."""
        warnings.warn(
            "json_parsing_collection_key is deprecated, "
            "use default_collection_parsing_key_path instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.default_collection_parsing_key_path

    @json_parsing_collection_key.setter
    def json_parsing_collection_key(self, value: str | None) -> None:
        warnings.warn(
            "json_parsing_collection_key is deprecated, "
            "use default_collection_parsing_key_path instead",
            DeprecationWarning,
            stacklevel=2,
        )
        self.default_collection_parsing_key_path = value

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or (self._owns_client and self._client.is_closed):
            logger.debug(f"Creating httpx.AsyncClient for {self.base_url}")
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    # Request factories

    def default_call(self) -> WSRequest:
        r"""Return a new request carrying the client defaults."""
        request = WSRequest()
        request.base_url = self.base_url
        request.log_level = self.log_level
        request.post_parameter_encoding = self.post_parameter_encoding
        request.shows_network_activity_indicator = self.shows_network_activity_indicator
        request.network_activity = self.network_activity
        request.default_headers = dict(self.headers)
        request.default_collection_parsing_key_path = self.default_collection_parsing_key_path
        request.request_adapter = self.request_adapter
        request.request_retrier = self.request_retrier
        request.error_handler = self.error_handler
        request.timeout = self.timeout
        request.completion_context = self.completion_context
        request.client = self._ensure_client()
        return request

    def call(
        self,
        url: str,
        verb: HTTPVerb | str = HTTPVerb.GET,
        params: Mapping[str, Any] | None = None,
    ) -> WSRequest:
        r"""Return a new request for ``verb`` and ``url`` carrying the
        client defaults."""
        return self.default_call().configure(verb, url, params)

    def get_request(self, url: str, params: Mapping[str, Any] | None = None) -> WSRequest:
        return self.call(url, HTTPVerb.GET, params)

    def post_request(self, url: str, params: Mapping[str, Any] | None = None) -> WSRequest:
        return self.call(url, HTTPVerb.POST, params)

    def put_request(self, url: str, params: Mapping[str, Any] | None = None) -> WSRequest:
        return self.call(url, HTTPVerb.PUT, params)

    def delete_request(self, url: str, params: Mapping[str, Any] | None = None) -> WSRequest:
        return self.call(url, HTTPVerb.DELETE, params)

    def post_multipart_request(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        *,
        name: str,
        data: bytes,
        file_name: str,
        mime_type: str,
    ) -> WSRequest:
        r"""Return a POST request whose body is multipart, with ``params``
        as form fields and one file part."""
        request = self.post_request(url, params)
        request.multipart_file = MultipartFile(name, data, file_name, mime_type)
        return request

    def put_multipart_request(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        *,
        name: str,
        data: bytes,
        file_name: str,
        mime_type: str,
    ) -> WSRequest:
        r"""Return a PUT request whose body is multipart, with ``params``
        as form fields and one file part."""
        request = self.put_request(url, params)
        request.multipart_file = MultipartFile(name, data, file_name, mime_type)
        return request

    # JSON calls

    def get(self, url: str, params: Mapping[str, Any] | None = None) -> WSCall[JSON]:
        return self._json_call(self.get_request(url, params))

    def post(self, url: str, params: Mapping[str, Any] | None = None) -> WSCall[JSON]:
        return self._json_call(self.post_request(url, params))

    def put(self, url: str, params: Mapping[str, Any] | None = None) -> WSCall[JSON]:
        return self._json_call(self.put_request(url, params))

    def delete(self, url: str, params: Mapping[str, Any] | None = None) -> WSCall[JSON]:
        return self._json_call(self.delete_request(url, params))

    # Void calls

    def get_void(self, url: str, params: Mapping[str, Any] | None = None) -> WSCall[None]:
        return self._void_call(self.get_request(url, params))

    def post_void(self, url: str, params: Mapping[str, Any] | None = None) -> WSCall[None]:
        return self._void_call(self.post_request(url, params))

    def put_void(self, url: str, params: Mapping[str, Any] | None = None) -> WSCall[None]:
        return self._void_call(self.put_request(url, params))

    def delete_void(self, url: str, params: Mapping[str, Any] | None = None) -> WSCall[None]:
        return self._void_call(self.delete_request(url, params))

    # Multipart calls

    def post_multipart(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        *,
        name: str,
        data: bytes,
        file_name: str,
        mime_type: str,
    ) -> WSCall[JSON]:
        r"""Upload one file with a multipart POST request.

        Example:
            ```pycon
            >>> ws.post_multipart(  # doctest: +SKIP
            ...     "/photos",
            ...     {"title": "cat"},
            ...     name="photo",
            ...     data=jpeg_bytes,
            ...     file_name="cat.jpg",
            ...     mime_type="image/jpeg",
            ... )

            ```
        """
        request = self.post_multipart_request(
            url, params, name=name, data=data, file_name=file_name, mime_type=mime_type
        )
        return self._json_call(request)

    def put_multipart(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        *,
        name: str,
        data: bytes,
        file_name: str,
        mime_type: str,
    ) -> WSCall[JSON]:
        request = self.put_multipart_request(
            url, params, name=name, data=data, file_name=file_name, mime_type=mime_type
        )
        return self._json_call(request)

    def _json_call(self, request: WSRequest) -> WSCall[JSON]:
        return request.fetch().receive_on(self.completion_context)

    def _void_call(self, request: WSRequest) -> WSCall[None]:
        return request.fetch().to_void().receive_on(self.completion_context)
