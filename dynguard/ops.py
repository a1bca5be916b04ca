"""Relationship between Python operators, dunder methods and ``operator``."""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any

__all__ = [
    "BINARY_OPERATORS",
    "COMPARISON_OPERATORS",
    "COMPOUND_ASSIGNMENTS",
    "UNARY_OPERATORS",
    "apply",
    "binary_method",
    "comparison_method",
    "compound_to_binary",
    "unary_method",
]

BINARY_OPERATORS: Mapping[str, str] = {
    "+": "__add__",
    "-": "__sub__",
    "*": "__mul__",
    "@": "__matmul__",
    "/": "__truediv__",
    "//": "__floordiv__",
    "%": "__mod__",
    "**": "__pow__",
    "<<": "__lshift__",
    ">>": "__rshift__",
    "&": "__and__",
    "|": "__or__",
    "^": "__xor__",
}

# "in" is dispatched on the container, i.e. the right-hand side
COMPARISON_OPERATORS: Mapping[str, str] = {
    "==": "__eq__",
    "!=": "__ne__",
    "<": "__lt__",
    "<=": "__le__",
    ">": "__gt__",
    ">=": "__ge__",
    "in": "__contains__",
    "not in": "__contains__",
}

UNARY_OPERATORS: Mapping[str, str] = {
    "-": "__neg__",
    "+": "__pos__",
    "~": "__invert__",
}

COMPOUND_ASSIGNMENTS: Mapping[str, str] = {
    "+=": "__iadd__",
    "-=": "__isub__",
    "*=": "__imul__",
    "@=": "__imatmul__",
    "/=": "__itruediv__",
    "//=": "__ifloordiv__",
    "%=": "__imod__",
    "**=": "__ipow__",
    "<<=": "__ilshift__",
    ">>=": "__irshift__",
    "&=": "__iand__",
    "|=": "__ior__",
    "^=": "__ixor__",
}

_FUNCTIONS: Mapping[str, Callable[..., Any]] = {
    "__add__": operator.add,
    "__sub__": operator.sub,
    "__mul__": operator.mul,
    "__matmul__": operator.matmul,
    "__truediv__": operator.truediv,
    "__floordiv__": operator.floordiv,
    "__mod__": operator.mod,
    "__pow__": operator.pow,
    "__lshift__": operator.lshift,
    "__rshift__": operator.rshift,
    "__and__": operator.and_,
    "__or__": operator.or_,
    "__xor__": operator.xor,
    "__eq__": operator.eq,
    "__ne__": operator.ne,
    "__lt__": operator.lt,
    "__le__": operator.le,
    "__gt__": operator.gt,
    "__ge__": operator.ge,
    "__contains__": operator.contains,
    "__neg__": operator.neg,
    "__pos__": operator.pos,
    "__invert__": operator.invert,
    "__iadd__": operator.iadd,
    "__isub__": operator.isub,
    "__imul__": operator.imul,
    "__imatmul__": operator.imatmul,
    "__itruediv__": operator.itruediv,
    "__ifloordiv__": operator.ifloordiv,
    "__imod__": operator.imod,
    "__ipow__": operator.ipow,
    "__ilshift__": operator.ilshift,
    "__irshift__": operator.irshift,
    "__iand__": operator.iand,
    "__ior__": operator.ior,
    "__ixor__": operator.ixor,
}


def _lookup(table: Mapping[str, str], symbol: str, kind: str) -> str:
    try:
        return table[symbol]
    except KeyError:
        raise ValueError(f"unsupported {kind} operator: {symbol!r}") from None


def binary_method(symbol: str) -> str:
    return _lookup(BINARY_OPERATORS, symbol, "binary")


def comparison_method(symbol: str) -> str:
    return _lookup(COMPARISON_OPERATORS, symbol, "comparison")


def unary_method(symbol: str) -> str:
    return _lookup(UNARY_OPERATORS, symbol, "unary")


def compound_to_binary(symbol: str) -> str:
    """Map ``"+="`` to the in-place dunder method used for ``a.x += y``."""

    return _lookup(COMPOUND_ASSIGNMENTS, symbol, "compound assignment")


def apply(method: str, receiver: Any, args: tuple[Any, ...]) -> Any:
    """Perform the real operation behind the dunder ``method``.

    Going through :mod:`operator` keeps Python's full semantics, including
    reflected operands (``__radd__``) and in-place fallbacks.  Names that are
    not operators are called as ordinary methods.
    """

    function = _FUNCTIONS.get(method)
    if function is None:
        return getattr(receiver, method)(*args)
    return function(receiver, *args)
