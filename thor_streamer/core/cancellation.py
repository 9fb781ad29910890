"""
Explicit shutdown signal threaded through connector, supervisors and receive loops.

A CancelToken is created once at process start. child() derives a token that
fires when its parent fires but can also be cancelled on its own, so a
supervisor can stop one subscription without touching its siblings.
run() and sleep() race an awaitable against the token so every suspension
point unblocks as soon as cancellation is requested.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, TypeVar

from thor_streamer.core.exceptions import OperationCancelledError

T = TypeVar("T")


class CancelToken:
    """One-shot cancellation flag with parent -> child propagation."""

    def __init__(self, parent: CancelToken | None = None) -> None:
        self._event = asyncio.Event()
        self._parent = parent
        self._children: list[CancelToken] = []
        if parent is not None and parent.cancelled:
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Fire this token and every token derived from it. Idempotent."""
        if self._event.is_set():
            return
        self._event.set()
        children, self._children = self._children, []
        for child in children:
            child.cancel()
        if self._parent is not None and self in self._parent._children:
            self._parent._children.remove(self)

    def child(self) -> CancelToken:
        """Return a derived token, cancelled when this one is."""
        token = CancelToken(parent=self)
        if not self.cancelled:
            self._children.append(token)
        return token

    async def wait(self) -> None:
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await awaitable unless the token fires first.

        Raises OperationCancelledError when the token wins, after the pending
        awaitable has been cancelled and has finished unwinding. If both finish
        together the awaitable's result wins.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError("operation cancelled")
        task: asyncio.Future[Any] = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()
        if task in done:
            return task.result()
        task.cancel()
        # Let the awaitable finish its own cleanup before reporting cancellation.
        await asyncio.gather(task, return_exceptions=True)
        raise OperationCancelledError("operation cancelled")

    async def sleep(self, delay: float) -> None:
        """Sleep for delay seconds; raise OperationCancelledError if cancelled first."""
        await self.run(asyncio.sleep(delay))
