"""Exception types raised by the interception core."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .models import Operation

__all__ = [
    "AccessDeniedError",
    "ConfigError",
    "ConsistencyError",
    "ResolutionError",
    "SecurityError",
]


class SecurityError(RuntimeError):
    """Base error for operations refused by the sandbox."""


class AccessDeniedError(SecurityError):
    """Raised when a policy (or the fail-closed default) rejects an operation."""

    def __init__(self, message: str, *, operation: Operation | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class ResolutionError(SecurityError):
    """Raised when no real operation matches the receiver and argument shapes."""

    def __init__(
        self,
        message: str,
        *,
        target: Any = None,
        alternatives: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.target = target
        self.alternatives = tuple(alternatives)


class ConsistencyError(RuntimeError):
    """Raised when an internal invariant of the rewritten code is violated."""


class ConfigError(ValueError):
    """Raised when a policy configuration document fails validation."""
