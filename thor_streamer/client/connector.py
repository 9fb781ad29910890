"""
Connector: open the gRPC session to the publisher, retrying with backoff.

Responsibilities:
- Open an insecure grpc.aio channel and wait until it is ready.
- Retry failed attempts with exponential backoff (doubling, capped) up to
  EndpointConfig.max_retries attempts.
- Abort promptly, without another attempt, when the shutdown token fires.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

import grpc

from thor_streamer.client.publisher import EventPublisher
from thor_streamer.core.cancellation import CancelToken
from thor_streamer.core.exceptions import OperationCancelledError, RetriesExhaustedError
from thor_streamer.streamer_logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 30.0
DEFAULT_BASE_DELAY_SEC = 1.0
DEFAULT_MAX_DELAY_SEC = 60.0
MAX_MESSAGE_BYTES = 100 * 1024 * 1024

_CHANNEL_OPTIONS = [
    ("grpc.max_receive_message_length", MAX_MESSAGE_BYTES),
    ("grpc.max_send_message_length", MAX_MESSAGE_BYTES),
]


@dataclass(frozen=True)
class EndpointConfig:
    """Where and how to connect. max_retries <= 0 means no attempt is made."""

    address: str
    auth_token: str
    max_retries: int = 5
    default_timeout: float = DEFAULT_TIMEOUT_SEC


@dataclass
class RetryState:
    """Backoff bookkeeping for one connect loop."""

    delay: float
    max_delay: float
    attempt: int = 0

    def next_delay(self) -> float:
        """Return the delay to wait now and double the next one (capped)."""
        current = self.delay
        self.delay = min(self.delay * 2, self.max_delay)
        return current


class Session:
    """
    An open channel to the publisher.

    Owned by whoever called connect_with_retry() until close(). Opening
    several subscriptions on one session is fine; each Subscription still has
    a single reader.
    """

    def __init__(self, channel: grpc.aio.Channel, config: EndpointConfig) -> None:
        self._channel = channel
        self._config = config
        self._publisher = EventPublisher(channel, config.auth_token)
        self._closed = False

    @property
    def config(self) -> EndpointConfig:
        return self._config

    @property
    def publisher(self) -> EventPublisher:
        return self._publisher

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._channel.close()
        logger.info("session_closed", address=self._config.address)

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


SessionOpener = Callable[[EndpointConfig], Awaitable[Session]]


async def open_grpc_session(config: EndpointConfig) -> Session:
    """Open a channel and wait for it to become ready within default_timeout."""
    channel = grpc.aio.insecure_channel(config.address, options=_CHANNEL_OPTIONS)
    try:
        await asyncio.wait_for(channel.channel_ready(), timeout=config.default_timeout)
    except BaseException:
        await channel.close()
        raise
    return Session(channel, config)


async def connect_with_retry(
    config: EndpointConfig,
    token: CancelToken,
    *,
    open_session: SessionOpener | None = None,
    base_delay: float = DEFAULT_BASE_DELAY_SEC,
    max_delay: float = DEFAULT_MAX_DELAY_SEC,
) -> Session:
    """
    Connect to config.address, retrying up to config.max_retries attempts.

    Raises:
        OperationCancelledError: token fired before or between attempts.
        RetriesExhaustedError: every attempt failed (or max_retries <= 0).
    """
    opener = open_session or open_grpc_session
    state = RetryState(delay=base_delay, max_delay=max_delay)
    last_error: Exception | None = None

    if token.cancelled:
        raise OperationCancelledError("connect cancelled before first attempt")

    while state.attempt < config.max_retries:
        state.attempt += 1
        try:
            session = await token.run(opener(config))
        except OperationCancelledError:
            logger.info("connect_cancelled", attempt=state.attempt)
            raise
        except Exception as e:
            last_error = e
            logger.warning(
                "connect_attempt_failed",
                address=config.address,
                attempt=state.attempt,
                max_retries=config.max_retries,
                error=str(e),
            )
        else:
            logger.info("connect_succeeded", address=config.address, attempt=state.attempt)
            return session

        if state.attempt >= config.max_retries:
            break
        delay = state.next_delay()
        logger.info("connect_backoff", attempt=state.attempt, backoff_sec=round(delay, 3))
        try:
            await token.sleep(delay)
        except OperationCancelledError:
            logger.info("connect_cancelled", attempt=state.attempt)
            raise

    logger.error(
        "connect_exhausted",
        address=config.address,
        attempts=state.attempt,
        error=str(last_error) if last_error else None,
    )
    raise RetriesExhaustedError(state.attempt, last_error)
