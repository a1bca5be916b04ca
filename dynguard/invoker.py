"""Chain-of-responsibility dispatcher driving interceptors for one operation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from . import registry
from .interceptor import Interceptor
from .models import Operation, OperationKind
from .reject import REJECT_EVERYTHING

__all__ = ["HOOKS", "Fallback", "Hook", "InvokerChain", "dispatch", "resolve_chain"]

LOGGER = logging.getLogger(__name__)

Hook = Callable[[Interceptor, "InvokerChain", Any, "str | None", tuple, dict], Any]
Fallback = Callable[[Any, "str | None", tuple, dict], Any]


def _method_call(policy, invoker, receiver, name, args, kwargs):
    return policy.on_method_call(invoker, receiver, name, *args, **kwargs)


def _static_call(policy, invoker, receiver, name, args, kwargs):
    return policy.on_static_call(invoker, receiver, name, *args, **kwargs)


def _new_instance(policy, invoker, receiver, name, args, kwargs):
    return policy.on_new_instance(invoker, receiver, *args, **kwargs)


def _super_call(policy, invoker, receiver, name, args, kwargs):
    return policy.on_super_call(
        invoker, receiver.sender_type, receiver.receiver, name, *args, **kwargs
    )


def _super_constructor(policy, invoker, receiver, name, args, kwargs):
    return policy.on_super_constructor(invoker, receiver, *args, **kwargs)


def _get_property(policy, invoker, receiver, name, args, kwargs):
    return policy.on_get_property(invoker, receiver, name)


def _set_property(policy, invoker, receiver, name, args, kwargs):
    return policy.on_set_property(invoker, receiver, name, args[0])


def _get_attribute(policy, invoker, receiver, name, args, kwargs):
    return policy.on_get_attribute(invoker, receiver, name)


def _set_attribute(policy, invoker, receiver, name, args, kwargs):
    return policy.on_set_attribute(invoker, receiver, name, args[0])


def _get_array(policy, invoker, receiver, name, args, kwargs):
    return policy.on_get_array(invoker, receiver, args[0])


def _set_array(policy, invoker, receiver, name, args, kwargs):
    return policy.on_set_array(invoker, receiver, args[0], args[1])


HOOKS: Mapping[OperationKind, Hook] = {
    OperationKind.METHOD_CALL: _method_call,
    OperationKind.STATIC_CALL: _static_call,
    OperationKind.NEW_INSTANCE: _new_instance,
    OperationKind.SUPER_CALL: _super_call,
    OperationKind.SUPER_CONSTRUCTOR: _super_constructor,
    OperationKind.GET_PROPERTY: _get_property,
    OperationKind.SET_PROPERTY: _set_property,
    OperationKind.GET_ATTRIBUTE: _get_attribute,
    OperationKind.SET_ATTRIBUTE: _set_attribute,
    OperationKind.GET_ARRAY: _get_array,
    OperationKind.SET_ARRAY: _set_array,
}


class InvokerChain:
    """Invoker bound to one link of an interceptor chain.

    Calling it either hands the operation to the interceptor at ``index``
    together with a fresh invoker for ``index + 1``, or, once the chain is
    exhausted, performs the real operation through ``fallback``.  Calling the
    same invoker twice replays the remainder of the chain.
    """

    __slots__ = ("_chain", "_fallback", "_hook", "_index")

    def __init__(
        self,
        chain: Sequence[Interceptor],
        hook: Hook,
        fallback: Fallback,
        index: int = 0,
    ) -> None:
        self._chain = chain
        self._hook = hook
        self._fallback = fallback
        self._index = index

    @property
    def has_next(self) -> bool:
        return self._index < len(self._chain)

    def __call__(self, receiver: Any, name: str | None, /, *args: Any, **kwargs: Any) -> Any:
        if self._index < len(self._chain):
            policy = self._chain[self._index]
            successor = InvokerChain(self._chain, self._hook, self._fallback, self._index + 1)
            return self._hook(policy, successor, receiver, name, args, kwargs)
        return self._fallback(receiver, name, args, kwargs)

    def __repr__(self) -> str:
        return f"<InvokerChain link {self._index} of {len(self._chain)}>"


def resolve_chain(receiver: Any, operation: Operation | None = None) -> tuple[Interceptor, ...]:
    """Interceptors that see an operation on ``receiver``.

    A ``None`` receiver bypasses interception entirely; the real operation on
    ``None`` cannot reach anything worth protecting.  An empty registration
    falls back to the reject-everything interceptor, bound to ``operation``
    when one is given.
    """

    if receiver is None:
        return ()
    chain = registry.active_chain()
    if chain:
        return chain
    if operation is None:
        return (REJECT_EVERYTHING,)
    if LOGGER.isEnabledFor(logging.DEBUG):
        LOGGER.debug("no interceptor registered; rejecting %s", operation.describe())
    return (REJECT_EVERYTHING.bound(operation),)


def dispatch(operation: Operation, fallback: Fallback) -> Any:
    """Run ``operation`` through the active chain, ending in ``fallback``."""

    chain = resolve_chain(operation.receiver, operation)
    invoker = InvokerChain(chain, HOOKS[operation.kind], fallback)
    return invoker(operation.receiver, operation.name, *operation.args, **operation.kwargs)
