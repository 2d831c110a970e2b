"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: coalescing.py.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Hashable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from .contracts import CoalescingPolicy
from .errors import FingerprintError
from .fingerprint import Fingerprint, make_fingerprint
from .handle import SharedResult

T = TypeVar("T")

Producer = Callable[..., Union[Awaitable[T], T]]

_UNBOUND = object()

logger = logging.getLogger("coalesce.coalescing")


@dataclass(slots=True)
class PendingEntry(Generic[T]):
    """One in-flight episode registered under its fingerprint."""

    fingerprint: Hashable
    handle: SharedResult[T]
    started_at: float = field(default_factory=time.monotonic)
    receiver: Any = None


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Coalescer(Generic[T]):
    """
    Deduplicate concurrent calls that share an argument fingerprint.

    Calling the coalescer returns an awaitable ``SharedResult``. The first call
    for a fingerprint registers a pending entry and starts the producer in its
    own eagerly started task, so the producer runs up to its first suspension
    before the call returns. Later calls made before that task settles get the
    same handle back. Settling the handle and dropping the entry happen in one
    synchronous step, so the next call after settlement starts a new episode.

    Used as a method decorator, the instance is part of the key: calls on the
    same object coalesce, calls on different objects do not. Custom
    fingerprints never see the instance.

    Must be called from a running event loop. The pending table belongs to
    this instance only.
    """

    def __init__(
        self,
        producer: Producer[T],
        *,
        fingerprint: Fingerprint | None = None,
        policy: CoalescingPolicy | None = None,
        name: str | None = None,
    ) -> None:
        functools.update_wrapper(self, producer)
        self._producer = producer
        self._policy = policy or CoalescingPolicy()
        self._fingerprint = fingerprint or make_fingerprint(sort_keys=self._policy.sort_keys)
        self._name = name or getattr(producer, "__qualname__", None) or repr(producer)
        self._pending: dict[Hashable, PendingEntry[T]] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return BoundCoalescer(self, instance)

    @property
    def policy(self) -> CoalescingPolicy:
        return self._policy

    @property
    def pending_count(self) -> int:
        """Return number of episodes currently in flight."""
        self._prune()
        loop = _running_loop()
        return sum(1 for entry in self._pending.values() if self._is_live(entry, loop))

    def is_pending(self, *args: Any, **kwargs: Any) -> bool:
        """Return whether an episode is in flight for these arguments."""
        return self._is_pending(_UNBOUND, args, kwargs)

    def __call__(self, *args: Any, **kwargs: Any) -> SharedResult[T]:
        return self._invoke(_UNBOUND, args, kwargs)

    def _invoke(
        self,
        receiver: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> SharedResult[T]:
        loop = asyncio.get_running_loop()
        call_args = args if receiver is _UNBOUND else (receiver, *args)
        if not self._policy.enabled:
            entry = PendingEntry(fingerprint=None, handle=SharedResult(loop=loop))
            self._start(loop, entry, call_args, kwargs)
            return entry.handle

        key = self._key(receiver, args, kwargs)
        existing = self._pending.get(key)
        if existing is not None and self._is_live(existing, loop):
            logger.debug("Joined in-flight %s call (fingerprint=%s)", self._name, key)
            return existing.handle

        self._prune()
        entry = PendingEntry(
            fingerprint=key,
            handle=SharedResult(key, loop=loop),
            receiver=None if receiver is _UNBOUND else receiver,
        )
        self._pending[key] = entry
        logger.debug("Started %s episode (fingerprint=%s)", self._name, key)
        self._start(loop, entry, call_args, kwargs)
        return entry.handle

    def _is_pending(self, receiver: Any, args: tuple[Any, ...], kwargs: dict[str, Any]) -> bool:
        entry = self._pending.get(self._key(receiver, args, kwargs))
        return entry is not None and self._is_live(entry, _running_loop())

    def _key(self, receiver: Any, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Hashable:
        fp = self._fingerprint_of(args, kwargs)
        if receiver is _UNBOUND:
            return fp
        # The entry pins the receiver, so its id stays unique while pending.
        return (id(receiver), fp)

    def _fingerprint_of(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Hashable:
        try:
            fp = self._fingerprint(args, kwargs)
            hash(fp)
        except FingerprintError:
            raise
        except Exception as error:
            raise FingerprintError(f"Cannot fingerprint call arguments: {error}") from error
        return fp

    @staticmethod
    def _is_live(entry: PendingEntry[T], loop: asyncio.AbstractEventLoop | None) -> bool:
        handle = entry.handle
        if handle.done() or handle.loop.is_closed():
            return False
        return loop is None or handle.loop is loop

    def _prune(self) -> None:
        # Entries left behind by a closed loop can never settle.
        stale = [
            key
            for key, entry in self._pending.items()
            if entry.handle.done() or entry.handle.loop.is_closed()
        ]
        for key in stale:
            del self._pending[key]

    def _start(
        self,
        loop: asyncio.AbstractEventLoop,
        entry: PendingEntry[T],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        task = asyncio.Task(self._run(entry, args, kwargs), loop=loop, eager_start=True)
        if not task.done():
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(
        self,
        entry: PendingEntry[T],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        handle = entry.handle
        try:
            value = self._producer(*args, **kwargs)
            if inspect.isawaitable(value):
                value = await value
        except asyncio.CancelledError:
            handle.cancel()
            raise
        except Exception as error:
            handle.set_exception(error)
        except BaseException as error:
            handle.set_exception(error)
            raise
        else:
            handle.set_result(value)
        finally:
            self._release(entry)

    def _release(self, entry: PendingEntry[T]) -> None:
        # Only drop the row if it still belongs to this episode.
        if self._pending.get(entry.fingerprint) is entry:
            del self._pending[entry.fingerprint]
            logger.debug(
                "Settled %s episode in %.3fs (fingerprint=%s)",
                self._name,
                time.monotonic() - entry.started_at,
                entry.fingerprint,
            )

    def __repr__(self) -> str:
        return f"<Coalescer {self._name} pending={len(self._pending)}>"


class BoundCoalescer(Generic[T]):
    """Coalescer bound to one instance; shares its owner's pending table."""

    __slots__ = ("_owner", "_receiver")

    def __init__(self, owner: Coalescer[T], receiver: Any) -> None:
        self._owner = owner
        self._receiver = receiver

    def __call__(self, *args: Any, **kwargs: Any) -> SharedResult[T]:
        return self._owner._invoke(self._receiver, args, kwargs)

    def is_pending(self, *args: Any, **kwargs: Any) -> bool:
        return self._owner._is_pending(self._receiver, args, kwargs)

    def __repr__(self) -> str:
        return f"<BoundCoalescer {self._owner._name} of {self._receiver!r}>"


def wrap(
    producer: Producer[T],
    fingerprint: Fingerprint | None = None,
    *,
    policy: CoalescingPolicy | None = None,
) -> Coalescer[T]:
    """
    Wrap ``producer`` so concurrent calls with equal arguments share one run.

    Args:
        producer: Coroutine function, awaitable-returning callable, or plain
            callable producing one result.
        fingerprint: Optional ``(args, kwargs) -> hashable`` key function.
            Defaults to ``default_fingerprint``.
        policy: Coalescing controls; ``CoalescingPolicy()`` when omitted.
    """
    return Coalescer(producer, fingerprint=fingerprint, policy=policy)


def coalesced(
    producer: Producer[T] | None = None,
    *,
    fingerprint: Fingerprint | None = None,
    policy: CoalescingPolicy | None = None,
) -> Any:
    """Decorator form of ``wrap``, usable bare or with keyword arguments."""
    if producer is not None:
        return wrap(producer, fingerprint, policy=policy)

    def decorator(fn: Producer[T]) -> Coalescer[T]:
        return wrap(fn, fingerprint, policy=policy)

    return decorator
