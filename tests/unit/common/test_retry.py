"""Tests for feed_mirror.utils.retry and error classification."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from feed_mirror.errors import (
    ContentTooLargeError,
    ExternalAPIError,
    TransientNetworkError,
    is_retryable,
)
from feed_mirror.utils.retry import retry_async


def _recording_sleep():
    delays = []

    async def sleep(delay: float) -> None:
        delays.append(delay)

    return sleep, delays


class TestRetryAsync:
    def test_returns_first_success(self) -> None:
        fn = AsyncMock(return_value="ok")
        assert asyncio.run(retry_async(fn, attempts=3)) == "ok"
        assert fn.await_count == 1

    def test_retries_with_exponential_backoff(self) -> None:
        fn = AsyncMock(side_effect=[TransientNetworkError("a"), TransientNetworkError("b"), "ok"])
        sleep, delays = _recording_sleep()

        result = asyncio.run(retry_async(fn, attempts=3, base_delay=1.0, sleep=sleep))

        assert result == "ok"
        assert fn.await_count == 3
        assert delays == [1.0, 2.0]

    def test_raises_last_error_when_exhausted(self) -> None:
        fn = AsyncMock(side_effect=[TransientNetworkError("first"), TransientNetworkError("last")])
        sleep, delays = _recording_sleep()

        with pytest.raises(TransientNetworkError, match="last"):
            asyncio.run(retry_async(fn, attempts=2, sleep=sleep))
        assert delays == [1.0]

    def test_non_retryable_raises_immediately(self) -> None:
        fn = AsyncMock(side_effect=ContentTooLargeError("too big"))
        sleep, delays = _recording_sleep()

        with pytest.raises(ContentTooLargeError):
            asyncio.run(retry_async(fn, attempts=3, sleep=sleep))
        assert fn.await_count == 1
        assert delays == []

    def test_custom_predicate(self) -> None:
        fn = AsyncMock(side_effect=[KeyError("x"), "ok"])
        result = asyncio.run(retry_async(fn, attempts=2, base_delay=0, retryable=lambda e: True))
        assert result == "ok"


class TestIsRetryable:
    def test_transient_network(self) -> None:
        assert is_retryable(TransientNetworkError("timeout"))
        assert is_retryable(httpx.ConnectError("refused"))

    def test_validation_is_not_retryable(self) -> None:
        assert not is_retryable(ContentTooLargeError("big"))

    @pytest.mark.parametrize("status,expected", [(429, True), (503, True), (404, False), (401, False)])
    def test_external_api_by_status(self, status, expected) -> None:
        assert is_retryable(ExternalAPIError("x", status=status)) is expected

    def test_explicit_retryable_flag(self) -> None:
        assert is_retryable(ExternalAPIError("conflict", status=409, retryable=True))
        assert not is_retryable(ExternalAPIError("no token", retryable=False))

    def test_unknown_errors(self) -> None:
        assert not is_retryable(KeyError("x"))
