"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Deterministic argument fingerprints.

The default fingerprint is the SHA-256 digest of a canonical JSON encoding of
the call arguments. Sequences keep their order. Keyword argument names are
always sorted, since ``f(a=1, b=2)`` and ``f(b=2, a=1)`` are the same call.
Mapping values keep insertion order unless ``sort_keys`` is set, so two equal
dicts built in a different order do not coalesce by default. Mapping keys are
stored as their own JSON encoding, so ``{1: ...}`` and ``{"1": ...}`` stay
apart. Tuples encode like lists.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from collections.abc import Callable, Hashable, Mapping
from enum import Enum
from functools import partial
from typing import Any

from pydantic import BaseModel

from .errors import FingerprintError

Fingerprint = Callable[[tuple[Any, ...], Mapping[str, Any]], Hashable]


def _dumps(value: Any, *, sort_keys: bool) -> str:
    return json.dumps(
        value,
        ensure_ascii=True,
        sort_keys=sort_keys,
        separators=(",", ":"),
    )


def _canonical(obj: Any, *, sort_keys: bool, active: set[int]) -> Any:
    """Map one argument onto a JSON-encodable structure."""
    if isinstance(obj, Enum):
        return _canonical(obj.value, sort_keys=sort_keys, active=active)
    if obj is None or isinstance(obj, (str, int, float)):
        return obj

    marker = id(obj)
    if marker in active:
        raise ValueError("Circular reference detected")
    active.add(marker)
    walk = partial(_canonical, sort_keys=sort_keys, active=active)
    try:
        if isinstance(obj, BaseModel):
            return walk(obj.model_dump(mode="json"))
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return walk({f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)})
        if isinstance(obj, Mapping):
            rows: dict[str, Any] = {}
            for key, value in obj.items():
                encoded = _dumps(walk(key), sort_keys=sort_keys)
                if encoded in rows:
                    raise ValueError(f"Mapping keys collide on {encoded}")
                rows[encoded] = walk(value)
            return rows
        if isinstance(obj, (list, tuple)):
            return [walk(item) for item in obj]
        if isinstance(obj, (set, frozenset)):
            return sorted(
                (walk(item) for item in obj),
                key=partial(_dumps, sort_keys=sort_keys),
            )
        raise TypeError(f"Object of type {type(obj).__name__} is not fingerprintable")
    finally:
        active.discard(marker)


def default_fingerprint(
    args: tuple[Any, ...],
    kwargs: Mapping[str, Any],
    *,
    sort_keys: bool = False,
) -> str:
    """
    Build a deterministic fingerprint for one call.

    Args:
        args: Positional call arguments.
        kwargs: Keyword call arguments.
        sort_keys: Also sort keys of mapping values found inside arguments.

    Raises:
        FingerprintError: Arguments are cyclic or contain unencodable values.
    """
    try:
        payload = [
            _canonical(list(args), sort_keys=sort_keys, active=set()),
            {
                name: _canonical(kwargs[name], sort_keys=sort_keys, active=set())
                for name in sorted(kwargs)
            },
        ]
        normalized = _dumps(payload, sort_keys=sort_keys)
    except (TypeError, ValueError, RecursionError) as error:
        raise FingerprintError(f"Cannot fingerprint call arguments: {error}") from error
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def make_fingerprint(*, sort_keys: bool = False) -> Fingerprint:
    """Return the default fingerprint bound to one key ordering rule."""
    return partial(default_fingerprint, sort_keys=sort_keys)
