"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Coalescing settings and explicit environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .contracts import CoalescingPolicy

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    """
    Read one boolean flag from the environment.

    Args:
        name: Environment variable name.
        default: Value returned when the variable is unset or blank.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if not value:
        return default
    return value in _TRUTHY


@dataclass(frozen=True, slots=True)
class CoalesceSettings:
    """Explicit settings used when building wrapped producers."""

    enabled: bool = True
    sort_keys: bool = False

    @staticmethod
    def from_env() -> "CoalesceSettings":
        """Load settings from environment variables."""
        return CoalesceSettings(
            enabled=_env_flag("COALESCE_ENABLED", True),
            sort_keys=_env_flag("COALESCE_SORT_KEYS", False),
        )

    def to_policy(self) -> CoalescingPolicy:
        """Adapt settings into the policy consumed by ``Coalescer``."""
        return CoalescingPolicy(enabled=self.enabled, sort_keys=self.sort_keys)
