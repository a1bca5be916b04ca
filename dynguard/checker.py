"""Checked-operation facade called by rewritten sandbox code.

The rewriter replaces every designated expression of untrusted code with a
call to exactly one entry point of this module, for example::

    foo.bar(1, key=2)       ->  checked_call(foo, False, False, "bar", 1, key=2)
    foo?.bar                ->  checked_get_property(foo, True, False, "bar")
    foo.x += 1              ->  checked_set_property(foo, "x", False, False, "+=", 1)
    Foo(1)                  ->  checked_constructor(Foo, 1)
    fn(1)                   ->  checked_call(fn, False, False, "__call__", 1)
    super().run()           ->  checked_super_call(Current, self, "run")

Every entry point short-circuits guarded ``None`` receivers, applies spread
(broadcast) operations element-wise and otherwise hands the operation to the
interceptor chain of the calling execution context.  Nothing raised by an
interceptor or by the real operation is caught here.
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Iterable
from typing import Any

from . import ops
from .constructors import check_synthetic_call, find_constructor
from .invoker import Fallback, dispatch
from .models import Operation, OperationKind, Super

__all__ = [
    "MethodPointer",
    "checked_binary_op",
    "checked_call",
    "checked_cast",
    "checked_comparison",
    "checked_constructor",
    "checked_get_array",
    "checked_get_attribute",
    "checked_get_property",
    "checked_set_array",
    "checked_set_attribute",
    "checked_set_property",
    "checked_static_call",
    "checked_super_call",
    "checked_unary_op",
]

ASSIGN = "="

_STATIC_DESCRIPTORS = (staticmethod, classmethod, types.ClassMethodDescriptorType)

# conversions that are plain method calls on the converted value
_CONVERSION_METHODS = {
    bool: "__bool__",
    str: "__str__",
    int: "__int__",
    float: "__float__",
    complex: "__complex__",
    bytes: "__bytes__",
}


def _route(operation: Operation, fallback: Fallback) -> Any:
    if operation.receiver is None and operation.safe:
        return operation.value if operation.is_assignment else None
    if operation.spread:
        elements = _iterate(operation.receiver)
        if elements is not None:
            results = [
                _route(operation.for_element(element), fallback)
                for element in elements
                if element is not None
            ]
            return operation.value if operation.is_assignment else results
    return dispatch(operation, fallback)


def _iterate(receiver: Any) -> Iterable[Any] | None:
    if receiver is None:
        return None
    try:
        return iter(receiver)
    except TypeError:
        return None


# ---------------------------------------------------------------------------
# Real operations performed once the chain is exhausted
# ---------------------------------------------------------------------------
def _invoke_method(receiver: Any, name: str | None, args: tuple, kwargs: dict) -> Any:
    return getattr(receiver, name)(*args, **kwargs)


def _invoke_super(receiver: Super, name: str | None, args: tuple, kwargs: dict) -> Any:
    return getattr(super(receiver.sender_type, receiver.receiver), name)(*args, **kwargs)


def _get_property(receiver: Any, name: str | None, args: tuple, kwargs: dict) -> Any:
    return getattr(receiver, name)


def _set_property(receiver: Any, name: str | None, args: tuple, kwargs: dict) -> Any:
    setattr(receiver, name, args[0])
    return args[0]


def _get_attribute(receiver: Any, name: str | None, args: tuple, kwargs: dict) -> Any:
    if isinstance(receiver, type):
        return type.__getattribute__(receiver, name)
    return object.__getattribute__(receiver, name)


def _set_attribute(receiver: Any, name: str | None, args: tuple, kwargs: dict) -> Any:
    if isinstance(receiver, type):
        type.__setattr__(receiver, name, args[0])
    else:
        object.__setattr__(receiver, name, args[0])
    return args[0]


def _get_item(receiver: Any, name: str | None, args: tuple, kwargs: dict) -> Any:
    return receiver[args[0]]


def _set_item(receiver: Any, name: str | None, args: tuple, kwargs: dict) -> Any:
    receiver[args[0]] = args[1]
    return args[1]


def _apply_operator(receiver: Any, name: str | None, args: tuple, kwargs: dict) -> Any:
    return ops.apply(name, receiver, args)


# ---------------------------------------------------------------------------
# Calls
# ---------------------------------------------------------------------------
def _defines(cls: type, method: str) -> bool:
    try:
        inspect.getattr_static(cls, method)
    except AttributeError:
        return False
    return True


def _is_static_target(receiver: type, method: str) -> bool:
    try:
        target = inspect.getattr_static(receiver, method)
    except AttributeError:
        return False
    return isinstance(target, _STATIC_DESCRIPTORS)


def checked_call(
    receiver: Any, safe: bool, spread: bool, method: str, /, *args: Any, **kwargs: Any
) -> Any:
    """Intercept ``receiver.method(*args, **kwargs)``.

    ``Foo.bar()`` written against a class reaches this entry point as well
    (the rewriter cannot tell ``x = Foo; x.bar()`` apart from an instance
    call), so calls that resolve to a static or class method are re-routed to
    :func:`checked_static_call`.
    """

    if receiver is None and safe:
        return None
    if spread:
        elements = _iterate(receiver)
        if elements is not None:
            return [
                checked_call(element, True, False, method, *args, **kwargs)
                for element in elements
                if element is not None
            ]
    check_synthetic_call(receiver, method, args)
    if isinstance(receiver, type) and _is_static_target(receiver, method):
        return checked_static_call(receiver, method, *args, **kwargs)
    operation = Operation(
        OperationKind.METHOD_CALL, receiver, method, args, kwargs, safe=safe, spread=spread
    )
    return dispatch(operation, _invoke_method)


def checked_static_call(receiver: Any, method: str, /, *args: Any, **kwargs: Any) -> Any:
    """Intercept a call of a static/class method or of a module-level function."""

    operation = Operation(OperationKind.STATIC_CALL, receiver, method, args, kwargs)
    return dispatch(operation, _invoke_method)


def checked_constructor(type_: type, /, *args: Any, **kwargs: Any) -> Any:
    """Intercept ``type_(*args, **kwargs)``.

    The constructor is resolved before any interceptor runs so that calls
    that cannot be matched, or that try to smuggle a constructor wrapper,
    fail early.
    """

    match = find_constructor(type_, args, kwargs)

    def instantiate(receiver: Any, name: str | None, call_args: tuple, call_kwargs: dict) -> Any:
        if match.keyed and receiver is type_ and len(call_args) == 1 and call_args[0] is args[0]:
            return match.instantiate(call_args, call_kwargs)
        return receiver(*call_args, **call_kwargs)

    operation = Operation(OperationKind.NEW_INSTANCE, type_, None, args, kwargs)
    return dispatch(operation, instantiate)


def checked_super_call(
    sender_type: type, receiver: Any, method: str, /, *args: Any, **kwargs: Any
) -> Any:
    """Intercept ``super().method(...)`` written inside a method of ``sender_type``."""

    check_synthetic_call(receiver, method, args)
    operation = Operation(
        OperationKind.SUPER_CALL,
        Super(sender_type, receiver),
        method,
        args,
        kwargs,
    )
    return dispatch(operation, _invoke_super)


class MethodPointer:
    """First-class reference to ``receiver.method`` whose calls stay checked."""

    __slots__ = ("method", "receiver")

    def __init__(self, receiver: Any, method: str) -> None:
        self.receiver = receiver
        self.method = method

    def __call__(self, /, *args: Any, **kwargs: Any) -> Any:
        return checked_call(self.receiver, False, False, self.method, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<MethodPointer {type(self.receiver).__name__}.{self.method}>"


# ---------------------------------------------------------------------------
# Properties, attributes and items
# ---------------------------------------------------------------------------
def checked_get_property(receiver: Any, safe: bool, spread: bool, prop: str) -> Any:
    operation = Operation(OperationKind.GET_PROPERTY, receiver, prop, safe=safe, spread=spread)
    return _route(operation, _get_property)


def checked_set_property(receiver: Any, prop: str, safe: bool, spread: bool, op: str, value: Any) -> Any:
    """Intercept ``receiver.prop = value`` (or a compound form such as ``+=``).

    Compound assignments are decomposed into get, operator and set, each of
    which is checked.
    """

    if op != ASSIGN:
        current = checked_get_property(receiver, safe, spread, prop)
        value = _checked_compound(current, op, value)
    operation = Operation(
        OperationKind.SET_PROPERTY, receiver, prop, (value,), safe=safe, spread=spread
    )
    return _route(operation, _set_property)


def checked_get_attribute(receiver: Any, safe: bool, spread: bool, attribute: str) -> Any:
    operation = Operation(OperationKind.GET_ATTRIBUTE, receiver, attribute, safe=safe, spread=spread)
    return _route(operation, _get_attribute)


def checked_set_attribute(
    receiver: Any, attribute: str, safe: bool, spread: bool, op: str, value: Any
) -> Any:
    if op != ASSIGN:
        current = checked_get_attribute(receiver, safe, spread, attribute)
        value = _checked_compound(current, op, value)
    operation = Operation(
        OperationKind.SET_ATTRIBUTE,
        receiver,
        attribute,
        (value,),
        safe=safe,
        spread=spread,
    )
    return _route(operation, _set_attribute)


def checked_get_array(receiver: Any, index: Any) -> Any:
    operation = Operation(OperationKind.GET_ARRAY, receiver, None, (index,))
    return dispatch(operation, _get_item)


def checked_set_array(receiver: Any, index: Any, op: str, value: Any) -> Any:
    """Intercept ``receiver[index] = value`` (or a compound form such as ``+=``)."""

    if op != ASSIGN:
        current = checked_get_array(receiver, index)
        value = _checked_compound(current, op, value)
    operation = Operation(OperationKind.SET_ARRAY, receiver, None, (index, value))
    return dispatch(operation, _set_item)


# ---------------------------------------------------------------------------
# Operators and casts
# ---------------------------------------------------------------------------
def _checked_operator(lhs: Any, method: str, *args: Any) -> Any:
    operation = Operation(OperationKind.METHOD_CALL, lhs, method, args)
    return dispatch(operation, _apply_operator)


def _checked_compound(current: Any, op: str, value: Any) -> Any:
    return _checked_operator(current, ops.compound_to_binary(op), value)


def checked_binary_op(lhs: Any, op: str, rhs: Any) -> Any:
    """Intercept ``lhs <op> rhs``; operators are method calls on ``lhs``."""

    return _checked_operator(lhs, ops.binary_method(op), rhs)


def checked_comparison(lhs: Any, op: str, rhs: Any) -> Any:
    """Intercept comparisons and membership tests.

    ``x in y`` is a ``__contains__`` call on ``y``; ``not in`` negates it.
    """

    method = ops.comparison_method(op)
    if method == "__contains__":
        result = _checked_operator(rhs, method, lhs)
        return not result if op == "not in" else result
    return _checked_operator(lhs, method, rhs)


def checked_unary_op(op: str, value: Any) -> Any:
    """Intercept ``-value``, ``+value`` and ``~value``.

    Builtin numbers cannot run user code and are evaluated directly.
    """

    method = ops.unary_method(op)
    if type(value) in (int, float, complex, bool):
        return ops.apply(method, value, ())
    return _checked_operator(value, method)


def checked_cast(target: type, value: Any) -> Any:
    """Single checked-cast entry point: ``target(value)``.

    ``None`` and values that already are instances of ``target`` are
    returned unchanged.  Conversions to builtin scalars are checked as the
    conversion method call they perform when the type of ``value`` defines
    it (``int(2.5)`` runs ``float.__int__``).  Anything else, including
    parsing such as ``int("12")``, is checked as a construction of
    ``target``.
    """

    if value is None or isinstance(value, target):
        return value
    method = _CONVERSION_METHODS.get(target)
    if method is not None and _defines(type(value), method):

        def convert(receiver: Any, name: str | None, args: tuple, kwargs: dict) -> Any:
            return target(receiver)

        operation = Operation(OperationKind.METHOD_CALL, value, method)
        return dispatch(operation, convert)
    return checked_constructor(target, value)
