"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed policies for call coalescing.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CoalescingPolicy:
    """In-flight call deduplication controls."""

    enabled: bool = True
    sort_keys: bool = False
