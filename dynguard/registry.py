"""Per-execution-context registry of active interceptors.

Each chain lives in a :class:`~contextvars.ContextVar` holding an immutable
tuple.  Threads, asyncio tasks and explicit :meth:`contextvars.Context.run`
scopes therefore never observe each other's registrations, and a dispatch
that is already iterating keeps its snapshot even if an interceptor
unregisters itself halfway through.
"""

from __future__ import annotations

import contextlib
import contextvars
import functools
import logging
from collections.abc import Callable, Iterator
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .interceptor import Interceptor

__all__ = [
    "active_chain",
    "bind_context",
    "clear",
    "register",
    "registered",
    "unregister",
]

LOGGER = logging.getLogger(__name__)

_R = TypeVar("_R")

_CHAIN: ContextVar[tuple[Interceptor, ...]] = ContextVar("dynguard_policy_chain", default=())


def register(policy: Interceptor) -> None:
    """Append ``policy`` to the chain of the calling context."""

    chain = _CHAIN.get() + (policy,)
    _CHAIN.set(chain)
    LOGGER.debug("registered %s (chain length %d)", type(policy).__name__, len(chain))


def unregister(policy: Interceptor) -> None:
    """Remove the first entry identical or equal to ``policy``."""

    chain = _CHAIN.get()
    for position, candidate in enumerate(chain):
        if candidate is policy or candidate == policy:
            _CHAIN.set(chain[:position] + chain[position + 1 :])
            LOGGER.debug(
                "unregistered %s (chain length %d)", type(policy).__name__, len(chain) - 1
            )
            return
    LOGGER.debug("unregister ignored: %s is not registered", type(policy).__name__)


def active_chain() -> tuple[Interceptor, ...]:
    """Point-in-time snapshot of the calling context's chain."""

    return _CHAIN.get()


def clear() -> None:
    _CHAIN.set(())


@contextlib.contextmanager
def registered(*policies: Interceptor) -> Iterator[tuple[Interceptor, ...]]:
    """Register ``policies`` for the duration of a ``with`` block."""

    for policy in policies:
        register(policy)
    try:
        yield policies
    finally:
        for policy in reversed(policies):
            unregister(policy)


def bind_context(fn: Callable[..., _R]) -> Callable[..., _R]:
    """Return a callable that runs ``fn`` under the chain active right now.

    Deferred blocks created by sandboxed code (callbacks, thread targets)
    otherwise run under whatever context executes them, which for a fresh
    thread is an empty chain and hence the fail-closed default.
    """

    captured = contextvars.copy_context()

    @functools.wraps(fn)
    def runner(*args: Any, **kwargs: Any) -> _R:
        return captured.copy().run(fn, *args, **kwargs)

    return runner
