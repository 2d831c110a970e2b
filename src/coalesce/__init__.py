"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Call coalescing for asynchronous producers.

Concurrent calls with equal arguments share one underlying execution and all
receive the same outcome. Nothing is kept after the execution settles.

Quick start::

    from coalesce import coalesced

    @coalesced
    async def fetch_user(user_id: str) -> dict:
        ...

    a = fetch_user("42")
    b = fetch_user("42")  # joins the call above
    assert await a is await b
"""

from .coalescing import BoundCoalescer, Coalescer, PendingEntry, coalesced, wrap
from .contracts import CoalescingPolicy
from .errors import CoalesceError, FingerprintError, HandleStateError
from .fingerprint import Fingerprint, default_fingerprint, make_fingerprint
from .handle import SharedResult
from .settings import CoalesceSettings

__all__ = [
    "wrap",
    "coalesced",
    "Coalescer",
    "BoundCoalescer",
    "PendingEntry",
    "SharedResult",
    "CoalescingPolicy",
    "CoalesceSettings",
    "Fingerprint",
    "default_fingerprint",
    "make_fingerprint",
    "CoalesceError",
    "FingerprintError",
    "HandleStateError",
]
