r"""Unit tests for the request adapter and retrier hooks."""

from __future__ import annotations

import httpx
import pytest

from wscall import (
    BackoffRetrier,
    BaseRequestAdapter,
    BaseRequestRetrier,
    HeadersAdapter,
    RetryDecision,
    TransportError,
)
from wscall.backoff import ConstantBackoff
from wscall.hooks import RequestAdapter, RequestRetrier

TEST_URL = "http://api.test/users"


@pytest.fixture
def request_() -> httpx.Request:
    return httpx.Request("GET", TEST_URL)


def status_error(status_code: int, headers: dict[str, str] | None = None) -> TransportError:
    response = httpx.Response(status_code, headers=headers)
    return TransportError(
        f"GET request to {TEST_URL} failed with status {status_code}",
        method="GET",
        url=TEST_URL,
        status_code=status_code,
        response=response,
    )


###################################
#     Tests for RetryDecision     #
###################################


def test_retry_decision_give_up() -> None:
    assert RetryDecision.give_up() == RetryDecision(retry=False, delay=0.0)


def test_retry_decision_retry_after() -> None:
    assert RetryDecision.retry_after(1.5) == RetryDecision(retry=True, delay=1.5)


##############################
#     Tests for adapters     #
##############################


def test_headers_adapter_sets_headers(request_: httpx.Request) -> None:
    """Test that the adapter sets its headers on the same request."""
    request_.headers["X-Token"] = "old"
    adapted = HeadersAdapter({"X-Token": "new", "X-Other": "1"}).adapt(request_)
    assert adapted is request_
    assert adapted.headers["x-token"] == "new"
    assert adapted.headers["x-other"] == "1"


def test_base_hooks_are_abstract() -> None:
    """Test that the hook base classes cannot be instantiated."""
    with pytest.raises(TypeError):
        BaseRequestAdapter()  # type: ignore[abstract]
    with pytest.raises(TypeError):
        BaseRequestRetrier()  # type: ignore[abstract]


def test_protocols_accept_duck_typed_hooks() -> None:
    """Test that any object with the right method satisfies the hook protocols."""
    class Adapter:
        def adapt(self, request: httpx.Request) -> httpx.Request:
            return request

    class Retrier:
        def should_retry(
            self, request: httpx.Request, error: TransportError, attempt: int
        ) -> RetryDecision:
            return RetryDecision.give_up()

    assert isinstance(Adapter(), RequestAdapter)
    assert isinstance(Retrier(), RequestRetrier)
    assert isinstance(BackoffRetrier(), RequestRetrier)


####################################
#     Tests for BackoffRetrier     #
####################################


def test_backoff_retrier_retries_timeouts(request_: httpx.Request) -> None:
    """Test that timeouts are retried with the backoff delay."""
    retrier = BackoffRetrier(max_retries=3)
    error = TransportError("timed out", timed_out=True)
    assert retrier.should_retry(request_, error, attempt=0) == RetryDecision(True, 0.3)
    assert retrier.should_retry(request_, error, attempt=2) == RetryDecision(True, 1.2)
    assert retrier.should_retry(request_, error, attempt=3) == RetryDecision.give_up()


def test_backoff_retrier_zero_retries(request_: httpx.Request) -> None:
    """Test that max_retries=0 never retries."""
    retrier = BackoffRetrier(max_retries=0)
    assert not retrier.should_retry(request_, TransportError("boom"), attempt=0).retry


@pytest.mark.parametrize("status_code", [429, 500, 502, 503, 504])
def test_backoff_retrier_retries_forcelist_status(
    request_: httpx.Request, status_code: int
) -> None:
    """Test that statuses in the forcelist are retried."""
    retrier = BackoffRetrier(backoff_strategy=ConstantBackoff(delay=2.0))
    decision = retrier.should_retry(request_, status_error(status_code), attempt=0)
    assert decision == RetryDecision(retry=True, delay=2.0)


@pytest.mark.parametrize("status_code", [400, 401, 404, 501])
def test_backoff_retrier_gives_up_on_other_status(
    request_: httpx.Request, status_code: int
) -> None:
    """Test that statuses outside the forcelist are not retried."""
    retrier = BackoffRetrier()
    assert not retrier.should_retry(request_, status_error(status_code), attempt=0).retry


def test_backoff_retrier_custom_forcelist(request_: httpx.Request) -> None:
    retrier = BackoffRetrier(status_forcelist=(404,))
    assert retrier.should_retry(request_, status_error(404), attempt=0).retry
    assert not retrier.should_retry(request_, status_error(503), attempt=0).retry


def test_backoff_retrier_honours_retry_after(request_: httpx.Request) -> None:
    """Test that the Retry-After header replaces the backoff delay."""
    retrier = BackoffRetrier()
    error = status_error(503, headers={"Retry-After": "7"})
    assert retrier.should_retry(request_, error, attempt=0) == RetryDecision(True, 7.0)


def test_backoff_retrier_max_wait_time_caps_delay(request_: httpx.Request) -> None:
    """Test that max_wait_time caps the delay."""
    retrier = BackoffRetrier(max_wait_time=2.0)
    error = status_error(429, headers={"Retry-After": "120"})
    assert retrier.should_retry(request_, error, attempt=0) == RetryDecision(True, 2.0)


def test_backoff_retrier_rejects_negative_max_retries() -> None:
    with pytest.raises(ValueError, match=r"max_retries must be >= 0, got -1"):
        BackoffRetrier(max_retries=-1)


def test_backoff_retrier_rejects_non_positive_max_wait_time() -> None:
    with pytest.raises(ValueError, match=r"max_wait_time must be > 0, got 0"):
        BackoffRetrier(max_wait_time=0)
