"""Tests for retry with exponential backoff."""

import httpx
import pytest

from src.utils.http.errors import (
    ConfigError,
    ResponseError,
    TransportError,
    UnknownError,
    is_retryable_error,
)
from src.utils.http.retry import RetryState, with_retry


class FlakyOperation:
    """Raises the queued errors in order, then returns ``result``."""

    def __init__(self, errors: list[Exception], result: str = "done"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def transport_error() -> TransportError:
    return TransportError("POST", "https://api.test/x", "timeout")


def response_error(status_code: int) -> ResponseError:
    return ResponseError("POST", "https://api.test/x", status_code)


class TestRetryState:
    def test_total_attempts_includes_first_call(self):
        assert RetryState(max_attempts=3, base_delay=1.0).total_attempts == 4

    def test_delay_doubles_from_second_attempt(self):
        state = RetryState(max_attempts=3, base_delay=1.0)
        assert [state.delay_before(n) for n in (1, 2, 3, 4)] == [0.0, 1.0, 2.0, 4.0]


class TestIsRetryable:
    @pytest.mark.parametrize("status_code", [429, 500, 502, 503, 504])
    def test_transient_statuses(self, status_code):
        assert is_retryable_error(response_error(status_code))

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 422])
    def test_client_errors(self, status_code):
        assert not is_retryable_error(response_error(status_code))

    def test_transport_errors(self):
        assert is_retryable_error(transport_error())

    def test_raw_httpx_timeouts(self):
        assert is_retryable_error(httpx.ReadTimeout("slow"))
        assert is_retryable_error(httpx.ConnectError("refused"))

    def test_other_errors(self):
        assert not is_retryable_error(ConfigError("bad", "GET", "/x"))
        assert not is_retryable_error(UnknownError("odd", "GET", "/x"))
        assert not is_retryable_error(ValueError("nope"))


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures(sleeps):
    operation = FlakyOperation([transport_error(), response_error(503)])

    assert await with_retry(operation, max_attempts=3, base_delay=1.0) == "done"
    assert operation.calls == 3
    assert sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts_plus_one(sleeps):
    errors = [transport_error() for _ in range(10)]
    operation = FlakyOperation(errors)

    with pytest.raises(TransportError) as exc_info:
        await with_retry(operation, max_attempts=3, base_delay=1.0)

    assert operation.calls == 4
    assert sleeps == [1.0, 2.0, 4.0]
    assert exc_info.value is errors[3]


@pytest.mark.asyncio
async def test_rate_limited_calls_are_retried(sleeps):
    operation = FlakyOperation([response_error(429)])

    assert await with_retry(operation, max_attempts=2, base_delay=0.25) == "done"
    assert sleeps == [0.25]


@pytest.mark.asyncio
async def test_non_retryable_error_is_raised_immediately(sleeps):
    error = response_error(400)
    operation = FlakyOperation([error])

    with pytest.raises(ResponseError) as exc_info:
        await with_retry(operation, max_attempts=3)

    assert exc_info.value is error
    assert operation.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_unexpected_exceptions_are_not_retried(sleeps):
    operation = FlakyOperation([KeyError("missing")])

    with pytest.raises(KeyError):
        await with_retry(operation, max_attempts=3)

    assert operation.calls == 1


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt(sleeps):
    operation = FlakyOperation([transport_error()])

    with pytest.raises(TransportError):
        await with_retry(operation, max_attempts=0)

    assert operation.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_negative_retry_budget_is_config_error(sleeps):
    operation = FlakyOperation([])

    with pytest.raises(ConfigError):
        await with_retry(operation, max_attempts=-1)

    assert operation.calls == 0
