"""Fail-closed interceptor used when no interceptor is registered.

Code that went through the sandbox rewriter is assumed to be dangerous when it
runs outside of a sandbox, for instance because registration was forgotten or
happened in another thread.  Silently performing the real operation would
defeat the sandbox, so every operation is rejected instead.

Receivers and arguments are untrusted: only their type names are rendered.
"""

from __future__ import annotations

from typing import Any

from .errors import AccessDeniedError
from .interceptor import Interceptor
from .models import Operation, describe_arguments, type_name

__all__ = ["REJECT_EVERYTHING", "RejectEverythingInterceptor"]


class RejectEverythingInterceptor(Interceptor):
    """Interceptor whose every hook raises :class:`AccessDeniedError`.

    When bound to the operation being rejected, the error carries it as
    :attr:`AccessDeniedError.operation`.
    """

    def __init__(self, operation: Operation | None = None) -> None:
        self.operation = operation

    def bound(self, operation: Operation) -> RejectEverythingInterceptor:
        return type(self)(operation)

    def _deny(self, message: str) -> AccessDeniedError:
        return AccessDeniedError(message, operation=self.operation)

    def on_method_call(self, invoker, receiver, method, /, *args, **kwargs):
        raise self._deny(
            "Rejecting unsandboxed method call: "
            f"{type_name(receiver)}.{method}{describe_arguments(args, kwargs)}"
        )

    def on_static_call(self, invoker, receiver, method, /, *args, **kwargs):
        raise self._deny(
            "Rejecting unsandboxed static method call: "
            f"{type_name(receiver)}.{method}{describe_arguments(args, kwargs)}"
        )

    def on_new_instance(self, invoker, receiver, /, *args, **kwargs):
        raise self._deny(
            "Rejecting unsandboxed constructor call: "
            f"{type_name(receiver)}{describe_arguments(args, kwargs)}"
        )

    def on_super_call(self, invoker, sender_type, receiver, method, /, *args, **kwargs):
        raise self._deny(
            "Rejecting unsandboxed super method call: "
            f"{type_name(receiver)}.{method}{describe_arguments(args, kwargs)}"
        )

    def on_super_constructor(self, invoker, receiver, /, *args, **kwargs):
        raise self._deny(
            "Rejecting unsandboxed super constructor call: "
            f"{type_name(receiver)}{describe_arguments(args, kwargs)}"
        )

    def on_get_property(self, invoker, receiver, prop):
        raise self._deny(
            f"Rejecting unsandboxed property get: {type_name(receiver)}.{prop}"
        )

    def on_set_property(self, invoker, receiver, prop, value):
        raise self._deny(
            "Rejecting unsandboxed property set: "
            f"{type_name(receiver)}.{prop} = {type_name(value)}"
        )

    def on_get_attribute(self, invoker, receiver, attribute):
        raise self._deny(
            f"Rejecting unsandboxed attribute get: {type_name(receiver)}.{attribute}"
        )

    def on_set_attribute(self, invoker, receiver, attribute, value):
        raise self._deny(
            "Rejecting unsandboxed attribute set: "
            f"{type_name(receiver)}.{attribute} = {type_name(value)}"
        )

    def on_get_array(self, invoker, receiver, index):
        raise self._deny(
            f"Rejecting unsandboxed array get: {type_name(receiver)}[{_index(index)}]"
        )

    def on_set_array(self, invoker, receiver, index, value):
        raise self._deny(
            "Rejecting unsandboxed array set: "
            f"{type_name(receiver)}[{_index(index)}] = {type_name(value)}"
        )


def _index(value: Any) -> str:
    # exact int only; subclasses could override __str__
    if type(value) is int:
        return str(value)
    return type_name(value)


REJECT_EVERYTHING = RejectEverythingInterceptor()
