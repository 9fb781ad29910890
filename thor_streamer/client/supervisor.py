"""
Subscription supervisor: run one subscription task, race it against shutdown.

The subscription function receives a derived CancelToken. The supervisor
returns as soon as either the task finishes or the caller's token fires; in
the second case the task sees its derived token fire and unwinds on its own.
Cancellation-equivalent outcomes are benign and never reported; any other
failure is reported exactly once.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import grpc

from thor_streamer.core.cancellation import CancelToken
from thor_streamer.core.exceptions import OperationCancelledError, StreamEndedError
from thor_streamer.streamer_logging import get_logger

logger = get_logger(__name__)

SubscriptionFn = Callable[[CancelToken], Awaitable[None]]
FailureHook = Callable[[str, BaseException], None]


def is_cancellation(exc: BaseException | None) -> bool:
    """True for the local cancellation signals and gRPC CANCELLED status."""
    if exc is None:
        return False
    if isinstance(exc, (asyncio.CancelledError, OperationCancelledError)):
        return True
    if isinstance(exc, grpc.RpcError):
        code = getattr(exc, "code", None)
        if callable(code):
            return code() == grpc.StatusCode.CANCELLED
    return False


class SubscriptionSupervisor:
    """Supervises one subscription at a time; run several instances for several streams."""

    def __init__(self, name: str, *, on_failure: FailureHook | None = None) -> None:
        self._name = name
        self._on_failure = on_failure
        self._running = False

    @property
    def name(self) -> str:
        return self._name

    async def run(self, token: CancelToken, subscription_fn: SubscriptionFn) -> BaseException | None:
        """
        Run subscription_fn(child_token) until it finishes or token fires.

        Returns the reported failure, or None for a clean or cancelled exit.
        """
        if self._running:
            raise RuntimeError(f"supervisor {self._name} is already running a subscription")
        self._running = True
        child = token.child()
        task = asyncio.ensure_future(subscription_fn(child))
        waiter = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
            if task not in done:
                logger.info("subscription_shutdown", subscription=self._name)
                task.add_done_callback(self._after_shutdown)
                return None
            if task.cancelled():
                return None
            exc = task.exception()
            if exc is None or is_cancellation(exc):
                logger.info("subscription_finished", subscription=self._name)
                return None
            self._report(exc)
            return exc
        finally:
            child.cancel()
            waiter.cancel()
            self._running = False

    def _after_shutdown(self, task: asyncio.Future[None]) -> None:
        """Retrieve the outcome of a task left to unwind after shutdown."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and not is_cancellation(exc):
            logger.debug("subscription_unwind_error", subscription=self._name, error=str(exc))

    def _report(self, exc: BaseException) -> None:
        if isinstance(exc, StreamEndedError):
            logger.warning("subscription_stream_ended", subscription=self._name, error=str(exc))
        else:
            logger.error(
                "subscription_failed",
                subscription=self._name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
        if self._on_failure is not None:
            self._on_failure(self._name, exc)
