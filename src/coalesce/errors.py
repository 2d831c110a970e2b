"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error types raised by the coalescing wrapper.

Producer failures are never wrapped: the exception raised by the producer
reaches every caller sharing the episode as the same object.
"""

from __future__ import annotations


class CoalesceError(RuntimeError):
    """Base class for errors raised by the wrapper itself."""


class FingerprintError(CoalesceError):
    """Raised when call arguments cannot be turned into a fingerprint."""


class HandleStateError(CoalesceError):
    """Raised on invalid shared handle transitions."""
