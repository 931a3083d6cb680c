"""RequestExecutor — single-use, cancellable handle for one in-flight call.

Wraps an :class:`asyncio.Task`. Awaiting the executor yields the projected
result or raises the call's :class:`~apiforge.domain.errors.ApiForgeError`;
a cancelled executor raises :class:`asyncio.CancelledError`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine, Generator
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class RequestExecutor(Generic[T]):
    """Awaitable, cancellable handle for one call.

    Usage::

        executor = client.request("product.get_all", limit=5)
        executor.cancel_after(10.0)
        products = await executor
    """

    def __init__(
        self,
        coro: Coroutine[Any, Any, T],
        *,
        path: str,
        on_cancel_unstarted: Callable[[asyncio.CancelledError], Awaitable[object]] | None = None,
    ) -> None:
        self.path = path
        self._coro = coro
        self._on_cancel_unstarted = on_cancel_unstarted
        self._started = False
        self._cancel_requested = False
        self._cancel_msg: str | None = None
        self._task: asyncio.Task[T] = asyncio.ensure_future(self._drive())
        self._timer: asyncio.TimerHandle | None = None

    async def _drive(self) -> T:
        self._started = True
        if not self._cancel_requested:
            return await self._coro
        # Cancelled before the first step: the wrapped coroutine never starts,
        # so its own cleanup cannot run.
        self._coro.close()
        msg = self._cancel_msg
        exc = asyncio.CancelledError(msg) if msg is not None else asyncio.CancelledError()
        if self._on_cancel_unstarted is not None:
            await self._on_cancel_unstarted(exc)
        raise exc

    def __await__(self) -> Generator[Any, None, T]:
        return self._task.__await__()

    def cancel(self, msg: str | None = None) -> bool:
        """Request cancellation. Returns False if the call already settled."""
        if self._task.done():
            return False
        if not self._started:
            self._cancel_requested = True
            self._cancel_msg = msg
            return True
        return self._task.cancel(msg)

    def cancel_after(self, seconds: float) -> None:
        """Arm a timeout trigger that cancels the call after *seconds*."""
        if self._task.done():
            return
        if self._timer is not None:
            self._timer.cancel()
        loop = self._task.get_loop()
        self._timer = loop.call_later(seconds, self.cancel, f"timed out after {seconds}s")
        self._task.add_done_callback(self._disarm)

    def _disarm(self, _task: asyncio.Task[T]) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def done(self) -> bool:
        return self._task.done()

    def cancelled(self) -> bool:
        return self._task.cancelled()

    def result(self) -> T:
        """Return the settled result (raises like :meth:`asyncio.Task.result`)."""
        return self._task.result()

    def exception(self) -> BaseException | None:
        return self._task.exception()

    def add_done_callback(self, callback: Callable[[RequestExecutor[T]], object]) -> None:
        self._task.add_done_callback(lambda _task: callback(self))

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled() else "done" if self.done() else "pending"
        return f"<RequestExecutor {self.path} {state}>"
