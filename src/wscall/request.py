r"""Single web-service request builder and executor.

A ``WSRequest`` describes one HTTP exchange: verb, URL, parameters,
headers and the hooks to apply. ``fetch`` runs the exchange with
``httpx`` and returns a ``WSCall`` completing with the parsed JSON body
or with a ``WSError``.
"""

from __future__ import annotations

__all__ = ["WSRequest"]

import asyncio
import inspect
import logging
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any

import httpx

from wscall.call import WSCall
from wscall.config import (
    DEFAULT_TIMEOUT,
    EMPTY_BODY_STATUS_CODES,
    HTTPVerb,
    LogLevel,
    ParameterEncoding,
)
from wscall.exceptions import (
    AdaptationError,
    ApplicationError,
    ParsingError,
    ShapeError,
    TransportError,
)
from wscall.hooks import RetryDecision
from wscall.jsonvalue import JSON, JSONKind, parse_json
from wscall.params import MultipartFile, Params
from wscall.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from wscall.activity import NetworkActivityIndicator
    from wscall.call import CompletionContext
    from wscall.hooks import RequestAdapter, RequestRetrier

logger: logging.Logger = logging.getLogger(__name__)


class WSRequest:
    r"""Describe and execute exactly one HTTP exchange.

    The request is a mutable configuration bag until ``fetch`` is
    called. From then on its attributes cannot be reassigned and a
    second ``fetch`` raises ``RuntimeError``.

    Requests are usually created by the factory methods of ``WS``,
    which copy the client defaults into them.

    Attributes:
        http_verb: The HTTP method.
        base_url: Prefix joined with ``url`` by plain concatenation.
        url: The URL of the call, usually relative to ``base_url``.
        params: The request parameters. They go in the query string of
            GET and DELETE requests and in the body of POST and PUT
            requests.
        default_headers: Headers inherited from the client.
        headers: Headers of this request. They override default headers
            of the same name.
        returns_json: If ``False``, the body is not parsed: the call
            succeeds with a ``JSON`` null and neither the collection key
            path nor the error handler is applied.
        collection_parsing_key_path: Key path where the body must hold an
            array. Overrides ``default_collection_parsing_key_path``.
        default_collection_parsing_key_path: Key path inherited from the
            client.
        request_adapter: Optional hook rewriting the outgoing request.
        request_retrier: Optional hook deciding retries of transport
            failures.
        error_handler: Optional function returning an application error
            found in a decoded body, or ``None``.
        log_level: Verbosity of the call logging.
        post_parameter_encoding: Body encoding of POST and PUT params.
        shows_network_activity_indicator: If ``True``, the exchange is
            reported to ``network_activity``.
        network_activity: The indicator shared with the client.
        multipart_file: Optional binary part; makes the body multipart.
        timeout: The ``httpx`` timeout of each attempt.
        client: The ``httpx.AsyncClient`` used to send the request. If
            ``None``, a client is created for this call only.
        completion_context: Where the callbacks of the call run.

    Example:
        ```pycon
        >>> from wscall import WSRequest
        >>> request = WSRequest().configure("GET", "/users", {"page": 2})
        >>> request.base_url = "http://api.test"
        >>> request.resolved_url
        'http://api.test/users'

        ```
    """

    def __init__(self) -> None:
        self.http_verb: HTTPVerb = HTTPVerb.GET
        self.base_url = ""
        self.url = ""
        self.params = Params()
        self.default_headers: dict[str, str] = {}
        self.headers: dict[str, str] = {}
        self.returns_json = True
        self.collection_parsing_key_path: str | None = None
        self.default_collection_parsing_key_path: str | None = None
        self.request_adapter: RequestAdapter | None = None
        self.request_retrier: RequestRetrier | None = None
        self.error_handler: Callable[[JSON], Any] | None = None
        self.log_level = LogLevel.OFF
        self.post_parameter_encoding = ParameterEncoding.URL
        self.shows_network_activity_indicator = True
        self.network_activity: NetworkActivityIndicator | None = None
        self.multipart_file: MultipartFile | None = None
        self.timeout: float | httpx.Timeout = DEFAULT_TIMEOUT
        self.client: httpx.AsyncClient | None = None
        self.completion_context: CompletionContext | None = None
        self._fetched = False

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get("_fetched", False):
            msg = f"cannot set {name!r}: the request was already fetched"
            raise RuntimeError(msg)
        super().__setattr__(name, value)

    def __repr__(self) -> str:
        return f"<{self.__class__.__qualname__} {self.http_verb.value} {self.resolved_url}>"

    def configure(
        self,
        verb: HTTPVerb | str,
        url: str,
        params: Mapping[str, Any] | None = None,
    ) -> WSRequest:
        r"""Set the verb, URL and parameters of the call.

        The parameters are copied.

        Returns:
            The request, to allow chaining.
        """
        self.http_verb = HTTPVerb(verb)
        self.url = url
        self.params = Params(params)
        return self

    @property
    def resolved_url(self) -> str:
        return f"{self.base_url}{self.url}"

    @property
    def effective_headers(self) -> httpx.Headers:
        headers = httpx.Headers(self.default_headers)
        headers.update(self.headers)
        return headers

    @property
    def effective_collection_key_path(self) -> str | None:
        if self.collection_parsing_key_path is not None:
            return self.collection_parsing_key_path
        return self.default_collection_parsing_key_path

    @property
    def fetched(self) -> bool:
        return self._fetched

    def fetch(self) -> WSCall[JSON]:
        r"""Start the exchange.

        Must be called while an event loop is running.

        Returns:
            A call completing with the decoded body, or failing with
            ``AdaptationError``, ``TransportError``, ``ParsingError``,
            ``ShapeError`` or ``ApplicationError``.

        Raises:
            RuntimeError: If the request was already fetched.
        """
        if self._fetched:
            msg = "a WSRequest can only be fetched once"
            raise RuntimeError(msg)
        # take copies so that the caller cannot change the call once it started
        self.params = self.params.copy()
        self.default_headers = dict(self.default_headers)
        self.headers = dict(self.headers)
        self._fetched = True
        return WSCall(self._execute(), context=self.completion_context)

    async def _execute(self) -> JSON:
        if self.client is not None and self.client.is_closed:
            raise TransportError(
                f"{self.http_verb.value} request to {self.resolved_url} failed: "
                "the httpx client is closed",
                method=self.http_verb.value,
                url=self.resolved_url,
            )
        if self.client is not None:
            return await self._run(self.client)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._run(client)

    async def _run(self, client: httpx.AsyncClient) -> JSON:
        attempt = 0
        while True:
            request = await self._adapt(self._build_request(client))
            try:
                response = await self._send(client, request)
            except TransportError as error:
                try:
                    decision = await self._retry_decision(request, error, attempt)
                except Exception as exc:
                    raise TransportError(
                        f"{error.message} (the retrier failed: {exc})",
                        timed_out=error.timed_out,
                        method=error.method,
                        url=error.url,
                        status_code=error.status_code,
                        response=error.response,
                        cause=exc,
                    ) from exc
                if decision is None or not decision.retry:
                    raise
                logger.debug(
                    f"{request.method} to {request.url}: will retry in {decision.delay:.2f}s "
                    f"(attempt {attempt + 1} failed: {error.message})"
                )
                await asyncio.sleep(decision.delay)
                attempt += 1
                continue
            return self._handle_response(response, request)

    def _build_request(self, client: httpx.AsyncClient) -> httpx.Request:
        kwargs: dict[str, Any] = {"headers": self.effective_headers, "timeout": self.timeout}
        files = self.params.files()
        if self.multipart_file is not None:
            files.append(self.multipart_file)
        if files:
            kwargs["data"] = self.params.to_form()
            kwargs["files"] = [(part.name, part.as_httpx_file()) for part in files]
        elif self.params and self.http_verb.sends_body:
            if self.post_parameter_encoding is ParameterEncoding.JSON:
                kwargs["json"] = self.params.to_dict()
            else:
                kwargs["data"] = self.params.to_form()
        elif self.params:
            kwargs["params"] = self.params.to_query()
        return client.build_request(self.http_verb.value, self.resolved_url, **kwargs)

    async def _adapt(self, request: httpx.Request) -> httpx.Request:
        if self.request_adapter is None:
            return request
        try:
            adapted = self.request_adapter.adapt(request)
            if inspect.isawaitable(adapted):
                adapted = await adapted
        except Exception as exc:
            raise AdaptationError(
                f"{request.method} request to {request.url} could not be adapted: {exc}",
                method=request.method,
                url=str(request.url),
                cause=exc,
            ) from exc
        if not isinstance(adapted, httpx.Request):
            raise AdaptationError(
                f"{request.method} request to {request.url} could not be adapted: "
                f"the adapter returned {type(adapted).__qualname__}",
                method=request.method,
                url=str(request.url),
            )
        return adapted

    async def _send(self, client: httpx.AsyncClient, request: httpx.Request) -> httpx.Response:
        method, url = request.method, str(request.url)
        self._log_call(request)
        activity = (
            self.network_activity.exchange()
            if self.shows_network_activity_indicator and self.network_activity is not None
            else nullcontext()
        )
        try:
            with activity:
                response = await client.send(request)
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"{method} request to {url} timed out",
                timed_out=True,
                method=method,
                url=url,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(
                f"{method} request to {url} failed: {exc}",
                method=method,
                url=url,
                cause=exc,
            ) from exc
        self._log_response(request, response)
        if not response.is_success:
            raise TransportError(
                f"{method} request to {url} failed with status {response.status_code}",
                method=method,
                url=url,
                status_code=response.status_code,
                response=response,
            )
        return response

    async def _retry_decision(
        self, request: httpx.Request, error: TransportError, attempt: int
    ) -> RetryDecision | None:
        if self.request_retrier is None:
            return None
        decision = self.request_retrier.should_retry(request, error, attempt)
        if inspect.isawaitable(decision):
            decision = await decision
        if not isinstance(decision, RetryDecision):
            msg = f"expected a RetryDecision, got {type(decision).__qualname__}"
            raise TypeError(msg)
        return decision

    def _handle_response(self, response: httpx.Response, request: httpx.Request) -> JSON:
        if not self.returns_json:
            return JSON(None)
        method, url = request.method, str(request.url)
        body = self._decode(response, method, url)
        self._check_collection(body, response, method, url)
        self._check_application_error(body, response, method, url)
        return body

    def _decode(self, response: httpx.Response, method: str, url: str) -> JSON:
        content = response.content
        if not content.strip():
            if response.status_code not in EMPTY_BODY_STATUS_CODES:
                raise ParsingError(
                    f"{method} request to {url} returned an empty body",
                    method=method,
                    url=url,
                    status_code=response.status_code,
                    response=response,
                )
            return JSON(None)
        try:
            return parse_json(content)
        except ValueError as exc:
            raise ParsingError(
                f"{method} request to {url} returned an invalid JSON body: {exc}",
                method=method,
                url=url,
                status_code=response.status_code,
                response=response,
                cause=exc,
            ) from exc

    def _check_collection(
        self, body: JSON, response: httpx.Response, method: str, url: str
    ) -> None:
        key_path = self.effective_collection_key_path
        if key_path is None:
            return
        kind = body.at_path(key_path).kind
        if kind is not JSONKind.ARRAY:
            raise ShapeError(
                f"{method} request to {url} returned a body without an array at "
                f"key path {key_path!r} (found {kind.value})",
                key_path=key_path,
                method=method,
                url=url,
                status_code=response.status_code,
                response=response,
            )

    def _check_application_error(
        self, body: JSON, response: httpx.Response, method: str, url: str
    ) -> None:
        if self.error_handler is None:
            return
        try:
            error = self.error_handler(body)
        except ApplicationError:
            raise
        except Exception as exc:
            raise ApplicationError(
                f"{method} request to {url} could not be checked for an application error: "
                f"the error handler raised {exc!r}",
                error=exc,
                method=method,
                url=url,
                status_code=response.status_code,
                response=response,
                cause=exc,
            ) from exc
        if error is None:
            return
        if isinstance(error, ApplicationError):
            raise error
        cause = error if isinstance(error, BaseException) else None
        raise ApplicationError(
            f"{method} request to {url} returned an application error: {error}",
            error=error,
            method=method,
            url=url,
            status_code=response.status_code,
            response=response,
            cause=cause,
        ) from cause

    def _log_call(self, request: httpx.Request) -> None:
        if self.log_level < LogLevel.CALLS:
            return
        params = self.params.to_dict()
        log_structured(
            logger,
            logging.INFO,
            f"{request.method} {request.url} params={params}",
            method=request.method,
            url=str(request.url),
            params=params,
        )

    def _log_response(self, request: httpx.Request, response: httpx.Response) -> None:
        if self.log_level < LogLevel.CALLS_AND_RESPONSES:
            return
        log_structured(
            logger,
            logging.INFO,
            f"{response.status_code} {request.method} {request.url}\n{response.text}",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            body=response.text,
        )
