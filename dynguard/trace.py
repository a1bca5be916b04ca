"""Interceptor that records every operation it sees in a short textual form."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .interceptor import Interceptor
from .models import OperationKind

__all__ = ["TraceEvent", "TracingInterceptor", "short_type"]


@dataclass(frozen=True, slots=True)
class TraceEvent:
    """Immutable record of one intercepted operation."""

    kind: OperationKind
    line: str
    payload: Mapping[str, Any]


def short_type(value: Any) -> str:
    """Unqualified type name; classes are named by themselves."""

    if value is None:
        return "None"
    cls = value if isinstance(value, type) else type(value)
    return type.__getattribute__(cls, "__name__")


def _arguments(args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> str:
    parts = [short_type(arg) for arg in args]
    parts.extend(f"{key}={short_type(value)}" for key, value in kwargs.items())
    return ",".join(parts)


class TracingInterceptor(Interceptor):
    """Record operations and forward them unchanged.

    Lines follow the compact format ``Type.method(int,str)`` for method calls,
    ``Type:method(int)`` for static calls, ``new Type(int)`` for
    constructions, ``super Type.method()`` for super calls, ``Type.prop`` and
    ``Type.prop=int`` for properties, ``Type.@attr`` for raw attributes and
    ``Type[int]`` / ``Type[int]=str`` for item access.
    """

    def __init__(self, sink: Callable[[TraceEvent], None] | None = None) -> None:
        self._events: list[TraceEvent] = []
        self._sink = sink

    @property
    def events(self) -> tuple[TraceEvent, ...]:
        return tuple(self._events)

    @property
    def lines(self) -> list[str]:
        return [event.line for event in self._events]

    def reset(self) -> None:
        self._events.clear()

    def __str__(self) -> str:
        return "".join(f"{line}\n" for line in self.lines)

    def _record(self, kind: OperationKind, line: str, **payload: Any) -> None:
        event = TraceEvent(kind=kind, line=line, payload=MappingProxyType(payload))
        self._events.append(event)
        if self._sink is not None:
            self._sink(event)

    def on_method_call(self, invoker, receiver, method, /, *args, **kwargs):
        self._record(
            OperationKind.METHOD_CALL,
            f"{short_type(receiver)}.{method}({_arguments(args, kwargs)})",
            method=method,
        )
        return super().on_method_call(invoker, receiver, method, *args, **kwargs)

    def on_static_call(self, invoker, receiver, method, /, *args, **kwargs):
        self._record(
            OperationKind.STATIC_CALL,
            f"{short_type(receiver)}:{method}({_arguments(args, kwargs)})",
            method=method,
        )
        return super().on_static_call(invoker, receiver, method, *args, **kwargs)

    def on_new_instance(self, invoker, receiver, /, *args, **kwargs):
        self._record(
            OperationKind.NEW_INSTANCE, f"new {short_type(receiver)}({_arguments(args, kwargs)})"
        )
        return super().on_new_instance(invoker, receiver, *args, **kwargs)

    def on_super_call(self, invoker, sender_type, receiver, method, /, *args, **kwargs):
        self._record(
            OperationKind.SUPER_CALL,
            f"super {short_type(sender_type)}.{method}({_arguments(args, kwargs)})",
            method=method,
        )
        return super().on_super_call(invoker, sender_type, receiver, method, *args, **kwargs)

    def on_super_constructor(self, invoker, receiver, /, *args, **kwargs):
        self._record(
            OperationKind.SUPER_CONSTRUCTOR,
            f"super new {short_type(receiver)}({_arguments(args, kwargs)})",
        )
        return super().on_super_constructor(invoker, receiver, *args, **kwargs)

    def on_get_property(self, invoker, receiver, prop):
        self._record(OperationKind.GET_PROPERTY, f"{short_type(receiver)}.{prop}", name=prop)
        return super().on_get_property(invoker, receiver, prop)

    def on_set_property(self, invoker, receiver, prop, value):
        self._record(
            OperationKind.SET_PROPERTY,
            f"{short_type(receiver)}.{prop}={short_type(value)}",
            name=prop,
        )
        return super().on_set_property(invoker, receiver, prop, value)

    def on_get_attribute(self, invoker, receiver, attribute):
        self._record(
            OperationKind.GET_ATTRIBUTE, f"{short_type(receiver)}.@{attribute}", name=attribute
        )
        return super().on_get_attribute(invoker, receiver, attribute)

    def on_set_attribute(self, invoker, receiver, attribute, value):
        self._record(
            OperationKind.SET_ATTRIBUTE,
            f"{short_type(receiver)}.@{attribute}={short_type(value)}",
            name=attribute,
        )
        return super().on_set_attribute(invoker, receiver, attribute, value)

    def on_get_array(self, invoker, receiver, index):
        self._record(OperationKind.GET_ARRAY, f"{short_type(receiver)}[{short_type(index)}]")
        return super().on_get_array(invoker, receiver, index)

    def on_set_array(self, invoker, receiver, index, value):
        self._record(
            OperationKind.SET_ARRAY,
            f"{short_type(receiver)}[{short_type(index)}]={short_type(value)}",
        )
        return super().on_set_array(invoker, receiver, index, value)
