"""
Tests for connect_with_retry: attempt counting, backoff schedule and
prompt cancellation. Sessions are faked; no network is touched.
"""

from __future__ import annotations

import asyncio

import pytest

from thor_streamer.client.connector import EndpointConfig, RetryState, connect_with_retry
from thor_streamer.core.cancellation import CancelToken
from thor_streamer.core.exceptions import OperationCancelledError, RetriesExhaustedError

ADDRESS = "localhost:50051"


class FakeSession:
    def __init__(self, config):
        self.config = config


class FlakyOpener:
    """Fails the first `failures` calls, then returns a FakeSession."""

    def __init__(self, failures: int, on_attempt=None):
        self.failures = failures
        self.calls = 0
        self.on_attempt = on_attempt

    async def __call__(self, config):
        self.calls += 1
        if self.on_attempt is not None:
            self.on_attempt(self.calls)
        if self.calls <= self.failures:
            raise ConnectionError(f"refused #{self.calls}")
        return FakeSession(config)


@pytest.fixture
def recorded_sleeps(monkeypatch):
    delays: list[float] = []

    async def fake_sleep(self, delay):
        delays.append(delay)

    monkeypatch.setattr(CancelToken, "sleep", fake_sleep)
    return delays


def _config(max_retries: int) -> EndpointConfig:
    return EndpointConfig(address=ADDRESS, auth_token="secret", max_retries=max_retries)


def test_exhausts_after_max_retries_with_doubling_backoff(recorded_sleeps):
    opener = FlakyOpener(failures=100)

    async def go():
        await connect_with_retry(_config(3), CancelToken(), open_session=opener)

    with pytest.raises(RetriesExhaustedError) as exc_info:
        asyncio.run(go())
    assert opener.calls == 3
    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.last_error, ConnectionError)
    assert "3 attempts" in str(exc_info.value)
    # No wait after the final attempt.
    assert recorded_sleeps == [1.0, 2.0]


def test_succeeds_on_second_attempt(recorded_sleeps):
    opener = FlakyOpener(failures=1)

    async def go():
        return await connect_with_retry(_config(5), CancelToken(), open_session=opener)

    session = asyncio.run(go())
    assert isinstance(session, FakeSession)
    assert session.config.address == ADDRESS
    assert opener.calls == 2
    assert recorded_sleeps == [1.0]


def test_zero_retries_makes_no_attempt(recorded_sleeps):
    opener = FlakyOpener(failures=0)

    async def go():
        await connect_with_retry(_config(0), CancelToken(), open_session=opener)

    with pytest.raises(RetriesExhaustedError) as exc_info:
        asyncio.run(go())
    assert exc_info.value.attempts == 0
    assert opener.calls == 0


def test_cancelled_token_makes_no_attempt():
    opener = FlakyOpener(failures=0)

    async def go():
        token = CancelToken()
        token.cancel()
        await connect_with_retry(_config(5), token, open_session=opener)

    with pytest.raises(OperationCancelledError):
        asyncio.run(go())
    assert opener.calls == 0


def test_cancel_during_backoff_stops_promptly():
    """Cancel shortly into the second wait: two attempts, no third, well under the full delay."""

    async def go():
        loop = asyncio.get_running_loop()
        token = CancelToken()

        def on_attempt(n):
            if n == 2:
                loop.call_later(0.05, token.cancel)

        opener = FlakyOpener(failures=100, on_attempt=on_attempt)
        start = loop.time()
        with pytest.raises(OperationCancelledError):
            await connect_with_retry(_config(5), token, open_session=opener, base_delay=0.5)
        return opener.calls, loop.time() - start

    calls, elapsed = asyncio.run(go())
    assert calls == 2
    # 0.5s first wait + ~0.05s into the 1.0s second wait.
    assert elapsed < 1.4


def test_cancel_interrupts_hanging_attempt():
    async def go():
        loop = asyncio.get_running_loop()
        token = CancelToken()

        async def hang(config):
            await asyncio.Event().wait()

        loop.call_later(0.05, token.cancel)
        start = loop.time()
        with pytest.raises(OperationCancelledError):
            await connect_with_retry(_config(5), token, open_session=hang)
        return loop.time() - start

    assert asyncio.run(go()) < 1.0


def test_retry_state_caps_delay():
    state = RetryState(delay=32.0, max_delay=60.0)
    assert [state.next_delay() for _ in range(3)] == [32.0, 60.0, 60.0]
