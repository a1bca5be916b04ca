"""Operation descriptors shared by the dispatcher and the checked facade.

Descriptors are created fresh for every facade call and are never retained by
the core.  Receivers and arguments are untrusted values: the formatting
helpers here only ever look at their *types*, so user-defined ``__str__`` or
``__repr__`` implementations are never triggered while describing an
operation.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType, ModuleType
from typing import Any

__all__ = [
    "Operation",
    "OperationKind",
    "Super",
    "describe_arguments",
    "type_name",
]

_EMPTY_KWARGS: Mapping[str, Any] = MappingProxyType({})


class OperationKind(str, enum.Enum):
    """Every operation kind routed through the interceptor chain."""

    METHOD_CALL = "method_call"
    STATIC_CALL = "static_call"
    NEW_INSTANCE = "new_instance"
    SUPER_CALL = "super_call"
    SUPER_CONSTRUCTOR = "super_constructor"
    GET_PROPERTY = "get_property"
    SET_PROPERTY = "set_property"
    GET_ATTRIBUTE = "get_attribute"
    SET_ATTRIBUTE = "set_attribute"
    GET_ARRAY = "get_array"
    SET_ARRAY = "set_array"

    @property
    def is_set(self) -> bool:
        """Set-style operations evaluate to the value being assigned."""

        return self in _SET_KINDS


_SET_KINDS = frozenset(
    {OperationKind.SET_PROPERTY, OperationKind.SET_ATTRIBUTE, OperationKind.SET_ARRAY}
)


@dataclass(frozen=True, slots=True)
class Super:
    """Receiver of a super dispatch.

    Pairs the statically known declaring type with the actual instance so that
    interceptors can tell ``super().m()`` apart from ``self.m()``.
    """

    sender_type: type
    receiver: Any


@dataclass(frozen=True, slots=True)
class Operation:
    """Uniform description of one intercepted operation."""

    kind: OperationKind
    receiver: Any
    name: str | None = None
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_KWARGS)
    safe: bool = False
    spread: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))
        if not isinstance(self.kwargs, MappingProxyType):
            object.__setattr__(self, "kwargs", MappingProxyType(dict(self.kwargs)))

    @property
    def is_assignment(self) -> bool:
        return self.kind.is_set

    @property
    def value(self) -> Any:
        """Value being assigned by a set-style operation."""

        if not self.is_assignment:
            raise AttributeError(f"{self.kind.value} operations carry no assigned value")
        return self.args[-1]

    def for_element(self, receiver: Any) -> Operation:
        """Return the per-element operation used while broadcasting."""

        return replace(self, receiver=receiver, safe=True, spread=False)

    def describe(self) -> str:
        receiver = type_name(self.receiver)
        kind = self.kind
        if kind in (OperationKind.NEW_INSTANCE, OperationKind.SUPER_CONSTRUCTOR):
            return f"new {receiver}{describe_arguments(self.args, self.kwargs)}"
        if kind in (OperationKind.GET_ARRAY, OperationKind.SET_ARRAY):
            text = f"{receiver}[{type_name(self.args[0])}]"
            if kind is OperationKind.SET_ARRAY:
                text += f" = {type_name(self.args[1])}"
            return text
        if kind in (OperationKind.SET_PROPERTY, OperationKind.SET_ATTRIBUTE):
            return f"{receiver}.{self.name} = {type_name(self.args[0])}"
        if kind in (OperationKind.GET_PROPERTY, OperationKind.GET_ATTRIBUTE):
            return f"{receiver}.{self.name}"
        return f"{receiver}.{self.name}{describe_arguments(self.args, self.kwargs)}"


def type_name(value: Any) -> str:
    """Name the type of ``value`` without touching any user-controlled code."""

    if value is None:
        return "None"
    if isinstance(value, Super):
        return type_name(value.receiver)
    if isinstance(value, type):
        return _qualified(value)
    if isinstance(value, ModuleType):
        return value.__name__
    return _qualified(type(value))


def describe_arguments(
    args: Iterable[Any], kwargs: Mapping[str, Any] | None = None
) -> str:
    parts = [type_name(arg) for arg in args]
    if kwargs:
        parts.extend(f"{key}={type_name(value)}" for key, value in kwargs.items())
    return "(" + ", ".join(parts) + ")"


def _qualified(cls: type) -> str:
    module = type.__getattribute__(cls, "__module__")
    qualname = type.__getattribute__(cls, "__qualname__")
    if module in (None, "builtins"):
        return qualname
    return f"{module}.{qualname}"
