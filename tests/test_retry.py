"""
Tests for the retry engine.
"""

import asyncio
import pytest

from comment_analyzer.core.retry import compute_delay, execute_with_retry, is_retryable
from comment_analyzer.models.schemas import RetryPolicy
from comment_analyzer.utils.error_handling import JobCancelledError, UpstreamHTTPError, VideoNotFoundError

from conftest import NO_WAIT


class FlakyOperation:
    """Fails with the given errors in order, then returns ``result``."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def run(coro):
    return asyncio.run(coro)


def test_retries_server_errors_until_success():
    operation = FlakyOperation([UpstreamHTTPError(500, "boom"), UpstreamHTTPError(500, "boom")])

    result = run(execute_with_retry(operation, NO_WAIT))

    assert result == "ok"
    assert operation.calls == 3


def test_client_error_is_not_retried():
    error = UpstreamHTTPError(400, "bad request")
    operation = FlakyOperation([error] * 5)

    with pytest.raises(UpstreamHTTPError) as exc_info:
        run(execute_with_retry(operation, NO_WAIT))

    assert exc_info.value is error
    assert operation.calls == 1


def test_exhausted_retries_surface_last_error():
    errors = [UpstreamHTTPError(503, f"attempt {i}") for i in range(3)]
    operation = FlakyOperation(list(errors))

    with pytest.raises(UpstreamHTTPError) as exc_info:
        run(execute_with_retry(operation, NO_WAIT))

    assert exc_info.value is errors[-1]
    assert operation.calls == NO_WAIT.max_retries + 1


def test_timeout_counts_as_retryable_failure():
    calls = []

    async def slow_then_fast():
        calls.append(1)
        if len(calls) == 1:
            await asyncio.sleep(1)
        return "done"

    result = run(execute_with_retry(slow_then_fast, NO_WAIT, timeout=0.05))

    assert result == "done"
    assert len(calls) == 2


def test_backoff_delays_are_passed_to_sleep():
    policy = RetryPolicy(max_retries=3, initial_delay=1.0, max_delay=3.0, backoff_factor=2.0, jitter=False)
    delays = []

    async def record_sleep(delay):
        delays.append(delay)

    operation = FlakyOperation([UpstreamHTTPError(429, "slow down")] * 3)
    run(execute_with_retry(operation, policy, sleep=record_sleep))

    assert delays == [1.0, 2.0, 3.0]


@pytest.mark.parametrize("attempt,expected", [(1, 2.0), (2, 3.6), (3, 6.48), (4, 10.0)])
def test_compute_delay_without_jitter(attempt, expected):
    policy = RetryPolicy(initial_delay=2.0, max_delay=10.0, backoff_factor=1.8, jitter=False)
    assert compute_delay(policy, attempt) == pytest.approx(expected)


def test_compute_delay_jitter_bounds():
    policy = RetryPolicy(initial_delay=4.0, max_delay=30.0, backoff_factor=2.0, jitter=True)
    assert compute_delay(policy, 1, rand=lambda: 0.0) == pytest.approx(2.0)
    assert compute_delay(policy, 1, rand=lambda: 1.0) == pytest.approx(4.0)


@pytest.mark.parametrize("error,expected", [
    (UpstreamHTTPError(500, "x"), True),
    (UpstreamHTTPError(599, "x"), True),
    (UpstreamHTTPError(429, "x"), True),
    (UpstreamHTTPError(400, "x"), False),
    (UpstreamHTTPError(403, "quota"), False),
    (VideoNotFoundError("abc"), False),
    (asyncio.TimeoutError(), True),
    (ConnectionResetError("reset"), True),
    (RuntimeError("fetch failed"), True),
    (RuntimeError("read ECONNRESET"), True),
    (ValueError("unparseable"), False),
    (JobCancelledError("stop"), False),
])
def test_is_retryable(error, expected):
    assert is_retryable(error) is expected


def test_status_code_on_response_is_classified():
    class Response:
        status_code = 502

    class ClientError(Exception):
        response = Response()

    assert is_retryable(ClientError("bad gateway"))
