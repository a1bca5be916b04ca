"""Constructor resolution and the constructor-chaining bridge.

``super().__init__(...)`` is an ordinary call in Python and can be routed
through :func:`dynguard.checker.checked_super_call` like any other super
dispatch.  Rewriters that must additionally guarantee that *no* statement of a
constructor body runs before the chained call has been checked use the bridge
implemented here.  A constructor such as::

    class A(Base):
        def __init__(self, p):
            super().__init__(f(p))
            self.ready = True

is rewritten into a thin ``__init__`` that only checks the chained call and
forwards to a synthesized overload::

    class A(Base):
        def __init__(self, p):
            self.__chained_init__(
                checked_super_constructor(A, Base, (checked_call(...),), (p,)),
                p,
            )

        @synthetic_constructor(SuperConstructorWrapper)
        def __chained_init__(self, cw, p):
            super().__init__(*cw.args, **cw.kwargs)
            self.ready = True

The overload only accepts an unconsumed wrapper of exactly the expected
kind, so sandboxed code cannot call it directly to skip the check.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .errors import ConsistencyError, ResolutionError
from .invoker import dispatch
from .models import Operation, OperationKind, describe_arguments, type_name

__all__ = [
    "CHAINED_INIT",
    "ConstructorMatch",
    "SuperConstructorWrapper",
    "ThisConstructorWrapper",
    "check_synthetic_call",
    "checked_super_constructor",
    "checked_this_constructor",
    "find_constructor",
    "format_constructor",
    "legitimate_constructors",
    "synthetic_constructor",
]

LOGGER = logging.getLogger(__name__)

CHAINED_INIT = "__chained_init__"
_SYNTHETIC_FLAG = "__synthetic_constructor__"
_TOKEN = object()


class _ConstructorWrapper:
    __slots__ = ("_args", "_consumed", "_kwargs")

    def __init__(self, args: Sequence[Any], kwargs: Mapping[str, Any], token: object) -> None:
        if token is not _TOKEN:
            raise ConsistencyError("constructor wrappers are only created by the chaining bridge")
        self._args = tuple(args)
        self._kwargs = MappingProxyType(dict(kwargs))
        self._consumed = False

    @property
    def args(self) -> tuple[Any, ...]:
        return self._args

    @property
    def kwargs(self) -> Mapping[str, Any]:
        return self._kwargs

    @property
    def consumed(self) -> bool:
        return self._consumed

    def arg(self, idx: int) -> Any:
        return self._args[idx]

    def kwarg(self, name: str) -> Any:
        return self._kwargs[name]

    def __len__(self) -> int:
        return len(self._args)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {describe_arguments(self._args, self._kwargs)}>"


class SuperConstructorWrapper(_ConstructorWrapper):
    """Checked arguments for a chained call to the parent constructor."""

    __slots__ = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        raise TypeError("SuperConstructorWrapper cannot be subclassed")


class ThisConstructorWrapper(_ConstructorWrapper):
    """Checked arguments for a chained call to a constructor of the same type."""

    __slots__ = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        raise TypeError("ThisConstructorWrapper cannot be subclassed")


_WRAPPER_TYPES = (SuperConstructorWrapper, ThisConstructorWrapper)


@dataclass(frozen=True, slots=True)
class ConstructorMatch:
    """Outcome of constructor resolution."""

    type_: type
    signature: inspect.Signature | None
    keyed: bool = False

    def instantiate(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Any:
        if self.keyed:
            return self.type_(**args[0])
        return self.type_(*args, **kwargs)


def synthetic_constructor(kind: type[_ConstructorWrapper]) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark the synthesized overload that finishes a rewritten constructor."""

    if kind not in _WRAPPER_TYPES:
        raise TypeError(f"unsupported constructor wrapper kind: {kind!r}")

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(fn)
        def chained_init(self: Any, wrapper: Any, /, *args: Any, **kwargs: Any) -> Any:
            if not _is_valid_wrapper(kind, wrapper):
                raise _illegal_synthetic_call(type(self), kind)
            wrapper._consumed = True
            return fn(self, wrapper, *args, **kwargs)

        setattr(chained_init, _SYNTHETIC_FLAG, kind)
        return chained_init

    return decorator


def _is_valid_wrapper(kind: type, wrapper: Any) -> bool:
    # exact type: subclasses and look-alikes are rejected
    return type(wrapper) is kind and not wrapper._consumed


def _synthetic_kind(target: Any) -> type | None:
    kind = inspect.getattr_static(target, _SYNTHETIC_FLAG, None)
    return kind if kind in _WRAPPER_TYPES else None


def _illegal_synthetic_call(owner: type, kind: type) -> ResolutionError:
    alternatives = legitimate_constructors(owner)
    return ResolutionError(
        f"Rejecting illegal call to synthetic constructor: {type_name(owner)}.{CHAINED_INIT}"
        f" (expects {kind.__name__}). Perhaps you meant to use one of these constructors"
        f" instead: {', '.join(alternatives)}",
        target=owner,
        alternatives=alternatives,
    )


def check_synthetic_call(receiver: Any, method: str, args: Sequence[Any]) -> None:
    """Reject direct calls to a synthesized overload before any dispatch."""

    if receiver is None or not isinstance(method, str):
        return
    try:
        target = inspect.getattr_static(receiver, method)
    except AttributeError:
        return
    kind = _synthetic_kind(target)
    if kind is None:
        return
    if isinstance(receiver, type):
        owner = receiver
        position = 1  # unbound call: A.__chained_init__(obj, wrapper, ...)
    else:
        owner = type(receiver)
        position = 0
    wrapper = args[position] if len(args) > position else None
    if not _is_valid_wrapper(kind, wrapper):
        raise _illegal_synthetic_call(owner, kind)


def _signature(type_: type) -> inspect.Signature | None:
    try:
        return inspect.signature(type_)
    except (TypeError, ValueError):
        return None


def format_constructor(type_: Any, args: Sequence[Any], kwargs: Mapping[str, Any] | None = None) -> str:
    return f"new {type_name(type_)}{describe_arguments(args, kwargs)}"


def legitimate_constructors(type_: type) -> list[str]:
    """Human readable constructors of ``type_``, synthesized overloads excluded."""

    signature = _signature(type_)
    text = str(signature) if signature is not None else "(...)"
    return [f"{type_name(type_)}{text}"]


def find_constructor(
    type_: Any, args: Sequence[Any], kwargs: Mapping[str, Any] | None = None
) -> ConstructorMatch:
    """Resolve the constructor ``type_(*args, **kwargs)`` would run.

    A single plain ``dict`` argument that does not bind positionally is
    accepted in its keyed form, ``type_(**mapping)``.  Classes without an
    introspectable signature (some builtins) are accepted as-is.
    """

    kwargs = kwargs or {}
    if not isinstance(type_, type):
        raise ResolutionError(
            f"Unable to find constructor: {format_constructor(type_, args, kwargs)}"
            " (receiver is not a class)",
            target=type_,
        )
    for value in (*args, *kwargs.values()):
        if isinstance(value, _ConstructorWrapper):
            raise _illegal_synthetic_call(type_, type(value))

    signature = _signature(type_)
    if signature is None:
        return ConstructorMatch(type_, None)
    try:
        signature.bind(*args, **kwargs)
    except TypeError:
        pass
    else:
        return ConstructorMatch(type_, signature)

    if len(args) == 1 and not kwargs and type(args[0]) is dict:
        mapping = args[0]
        if all(type(key) is str for key in mapping):
            try:
                signature.bind(**mapping)
            except TypeError:
                pass
            else:
                return ConstructorMatch(type_, signature, keyed=True)

    alternatives = legitimate_constructors(type_)
    raise ResolutionError(
        f"Unable to find constructor: {format_constructor(type_, args, kwargs)}."
        f" Available constructors: {', '.join(alternatives)}",
        target=type_,
        alternatives=alternatives,
    )


def _chained_init_sanity(
    this_class: type,
    kind: type,
    constructor_args: Sequence[Any],
    constructor_kwargs: Mapping[str, Any],
) -> None:
    """Make sure the rewritten ``__init__`` lands on the overload we expect."""

    target = vars(this_class).get(CHAINED_INIT)
    if target is None:
        raise ConsistencyError(
            f"{type_name(this_class)} has no synthesized constructor; "
            "constructor synthesis must run before chained-call rewriting"
        )
    if _synthetic_kind(target) is not kind:
        raise ConsistencyError(
            f"synthesized constructor of {type_name(this_class)} does not accept {kind.__name__}"
        )
    try:
        inspect.signature(target).bind(None, None, *constructor_args, **constructor_kwargs)
    except TypeError as exc:
        raise ConsistencyError(
            f"synthesized constructor of {type_name(this_class)} does not accept the original"
            f" constructor arguments: {exc}"
        ) from exc


def _checked_chain(
    kind: OperationKind, target: type, args: Sequence[Any], kwargs: Mapping[str, Any]
) -> tuple[tuple[Any, ...], dict[str, Any]]:
    # arguments that reach the end of the chain are the ones used for the
    # real call; a chain that substitutes keeps the originals
    final: list[tuple[tuple[Any, ...], dict[str, Any]]] = []

    def record(receiver: Any, name: str | None, call_args: tuple, call_kwargs: dict) -> None:
        final.append((call_args, call_kwargs))

    dispatch(Operation(kind, target, None, tuple(args), kwargs), record)
    if final:
        return final[-1]
    return tuple(args), dict(kwargs)


def checked_super_constructor(
    this_class: type,
    super_class: type,
    super_args: Sequence[Any],
    constructor_args: Sequence[Any],
    *,
    super_kwargs: Mapping[str, Any] | None = None,
    constructor_kwargs: Mapping[str, Any] | None = None,
) -> SuperConstructorWrapper:
    """Check a chained ``super().__init__(...)`` and wrap its arguments."""

    super_kwargs = dict(super_kwargs or {})
    find_constructor(super_class, super_args, super_kwargs)
    if this_class is super_class or not issubclass(this_class, super_class):
        raise ConsistencyError(
            f"{type_name(super_class)} is not a parent type of {type_name(this_class)}"
        )
    _chained_init_sanity(
        this_class, SuperConstructorWrapper, constructor_args, dict(constructor_kwargs or {})
    )
    args, kwargs = _checked_chain(
        OperationKind.SUPER_CONSTRUCTOR, super_class, super_args, super_kwargs
    )
    LOGGER.debug("checked super constructor %s", format_constructor(super_class, args, kwargs))
    return SuperConstructorWrapper(args, kwargs, _TOKEN)


def checked_this_constructor(
    this_class: type,
    this_args: Sequence[Any],
    constructor_args: Sequence[Any],
    *,
    this_kwargs: Mapping[str, Any] | None = None,
    constructor_kwargs: Mapping[str, Any] | None = None,
) -> ThisConstructorWrapper:
    """Check a chained call to another constructor of ``this_class``."""

    this_kwargs = dict(this_kwargs or {})
    find_constructor(this_class, this_args, this_kwargs)
    _chained_init_sanity(
        this_class, ThisConstructorWrapper, constructor_args, dict(constructor_kwargs or {})
    )
    args, kwargs = _checked_chain(OperationKind.NEW_INSTANCE, this_class, this_args, this_kwargs)
    LOGGER.debug("checked this constructor %s", format_constructor(this_class, args, kwargs))
    return ThisConstructorWrapper(args, kwargs, _TOKEN)
