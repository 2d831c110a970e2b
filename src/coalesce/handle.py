"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: handle.py.
"""

from __future__ import annotations

import asyncio
from collections.abc import Generator, Hashable
from typing import Any, Generic, TypeVar

from .errors import HandleStateError

T = TypeVar("T")


class SharedResult(Generic[T]):
    """
    Settle-once result shared by every caller of one episode.

    Backed by a single ``asyncio.Future``. Each ``await`` observes it through
    ``asyncio.shield``, so cancelling one waiter leaves the shared future and
    the other waiters untouched. All waiters receive the same value or the
    same exception object.
    """

    __slots__ = ("fingerprint", "_future")

    def __init__(
        self,
        fingerprint: Hashable | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.fingerprint = fingerprint
        self._future: asyncio.Future[T] = (loop or asyncio.get_running_loop()).create_future()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._future.get_loop()

    def done(self) -> bool:
        return self._future.done()

    def cancelled(self) -> bool:
        return self._future.cancelled()

    def set_result(self, value: T) -> None:
        self._ensure_unsettled()
        self._future.set_result(value)

    def set_exception(self, error: BaseException) -> None:
        self._ensure_unsettled()
        self._future.set_exception(error)

    def cancel(self) -> None:
        self._ensure_unsettled()
        self._future.cancel()

    def result(self) -> T:
        """Return the settled value, raising the settled failure if any."""
        if not self._future.done():
            raise HandleStateError("Shared result is not settled yet")
        return self._future.result()

    def exception(self) -> BaseException | None:
        if not self._future.done():
            raise HandleStateError("Shared result is not settled yet")
        return self._future.exception()

    def _ensure_unsettled(self) -> None:
        if self._future.done():
            raise HandleStateError("Shared result is already settled")

    def __await__(self) -> Generator[Any, None, T]:
        return asyncio.shield(self._future).__await__()

    def __repr__(self) -> str:
        if not self._future.done():
            state = "pending"
        elif self._future.cancelled():
            state = "cancelled"
        elif self._future.exception() is not None:
            state = "failed"
        else:
            state = "succeeded"
        return f"<SharedResult {state} fingerprint={self.fingerprint!r}>"
