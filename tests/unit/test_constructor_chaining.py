"""Checked constructor chaining through synthesized overloads."""

from __future__ import annotations

import pytest

from dynguard import (
    ConsistencyError,
    Interceptor,
    ResolutionError,
    checked_call,
    checked_constructor,
    registry,
)
from dynguard.constructors import (
    SuperConstructorWrapper,
    ThisConstructorWrapper,
    check_synthetic_call,
    checked_super_constructor,
    checked_this_constructor,
    find_constructor,
    legitimate_constructors,
    synthetic_constructor,
)
from tests.helpers.policies import CallLog, PassThrough

EVENTS: list[str] = []


class Base:
    def __init__(self, value):
        EVENTS.append("Base body")
        self.value = value


class Child(Base):
    def __init__(self, p):
        self.__chained_init__(
            checked_super_constructor(
                Child, Base, (checked_call(p, False, False, "upper"),), (p,)
            ),
            p,
        )

    @synthetic_constructor(SuperConstructorWrapper)
    def __chained_init__(self, cw, p):
        super().__init__(*cw.args, **cw.kwargs)
        self.ready = True


class Pair:
    def __init__(self, a, b=None):
        if b is None:
            self.__chained_init__(checked_this_constructor(Pair, (a, a), (a,)), a)
            return
        self.a, self.b = a, b

    @synthetic_constructor(ThisConstructorWrapper)
    def __chained_init__(self, cw, a):
        Pair.__init__(self, *cw.args)


class Coord:
    def __init__(self, x, y):
        self.x, self.y = x, y


class NoOverload(Base):
    pass


class WrongKind(Base):
    @synthetic_constructor(ThisConstructorWrapper)
    def __chained_init__(self, cw, p):
        pass


class _RewriteSuperArgs(Interceptor):
    def on_super_constructor(self, invoker, receiver, /, *args, **kwargs):
        return invoker(receiver, None, "patched")


@pytest.fixture
def events() -> list[str]:
    EVENTS.clear()
    policy = CallLog(EVENTS)
    registry.register(policy)
    return EVENTS


def test_chained_constructor_is_checked_before_parent_body_runs(events: list[str]) -> None:
    child = checked_constructor(Child, "x")

    assert events == ["new Child", "str.upper", "super new Base", "Base body"]
    assert child.value == "X"
    assert child.ready is True


def test_interceptor_can_rewrite_super_constructor_arguments() -> None:
    registry.register(_RewriteSuperArgs())

    child = checked_constructor(Child, "x")

    assert child.value == "patched"


def test_this_constructor_chaining(events: list[str]) -> None:
    pair = checked_constructor(Pair, 1)

    assert (pair.a, pair.b) == (1, 1)
    assert events == ["new Pair", "new Pair"]


def test_direct_call_of_synthesized_overload_is_rejected(events: list[str]) -> None:
    child = checked_constructor(Child, "x")
    events.clear()

    with pytest.raises(ResolutionError, match="illegal call to synthetic constructor") as exc_info:
        checked_call(child, False, False, "__chained_init__", None, "y")

    assert "Perhaps you meant to use one of these constructors" in str(exc_info.value)
    assert exc_info.value.alternatives[0].endswith("Child(p)")
    assert events == []


def test_unbound_call_of_synthesized_overload_is_rejected(events: list[str]) -> None:
    child = checked_constructor(Child, "x")

    with pytest.raises(ResolutionError):
        checked_call(Child, False, False, "__chained_init__", child, None, "y")


def test_wrapper_is_single_use() -> None:
    registry.register(PassThrough())
    wrapper = checked_super_constructor(Child, Base, ("v",), ("v",))
    child = Child.__new__(Child)

    Child.__chained_init__(child, wrapper, "v")
    assert wrapper.consumed is True
    assert child.value == "v"

    with pytest.raises(ResolutionError):
        Child.__chained_init__(child, wrapper, "v")
    with pytest.raises(ResolutionError):
        check_synthetic_call(child, "__chained_init__", (wrapper, "v"))


def test_overload_rejects_wrapper_of_the_other_kind() -> None:
    registry.register(PassThrough())
    wrapper = checked_this_constructor(Pair, (1, 1), (1,))
    child = Child.__new__(Child)

    with pytest.raises(ResolutionError):
        Child.__chained_init__(child, wrapper, "v")


def test_wrappers_cannot_be_forged_or_subclassed() -> None:
    with pytest.raises(ConsistencyError):
        SuperConstructorWrapper((), {}, object())

    with pytest.raises(TypeError):

        class Forged(SuperConstructorWrapper):
            pass


def test_wrapper_cannot_be_passed_to_a_constructor() -> None:
    registry.register(PassThrough())
    wrapper = checked_super_constructor(Child, Base, ("v",), ("v",))

    with pytest.raises(ResolutionError):
        checked_constructor(Base, wrapper)


def test_wrapper_exposes_checked_arguments() -> None:
    registry.register(PassThrough())
    wrapper = checked_super_constructor(
        Child, Base, (), ("v",), super_kwargs={"value": 3}
    )

    assert wrapper.args == ()
    assert wrapper.kwarg("value") == 3
    assert len(wrapper) == 0
    assert repr(wrapper) == "<SuperConstructorWrapper (value=int)>"


def test_unresolvable_super_constructor_fails_before_any_interceptor(events: list[str]) -> None:
    with pytest.raises(ResolutionError, match="Unable to find constructor"):
        checked_super_constructor(Child, Base, (), ("v",))
    assert events == []


def test_super_class_must_be_a_parent() -> None:
    registry.register(PassThrough())

    with pytest.raises(ConsistencyError, match="is not a parent type"):
        checked_super_constructor(Child, Pair, (1, 2), ("v",))


def test_missing_synthesized_overload_is_a_consistency_error() -> None:
    registry.register(PassThrough())

    with pytest.raises(ConsistencyError, match="has no synthesized constructor"):
        checked_super_constructor(NoOverload, Base, (1,), (1,))


def test_synthesized_overload_of_wrong_kind_is_a_consistency_error() -> None:
    registry.register(PassThrough())

    with pytest.raises(ConsistencyError, match="does not accept SuperConstructorWrapper"):
        checked_super_constructor(WrongKind, Base, (1,), (1,))


def test_constructor_arguments_must_fit_the_overload() -> None:
    registry.register(PassThrough())

    with pytest.raises(ConsistencyError, match="original constructor arguments"):
        checked_super_constructor(Child, Base, (1,), (1, 2, 3))


def test_synthetic_constructor_only_accepts_wrapper_kinds() -> None:
    with pytest.raises(TypeError):
        synthetic_constructor(dict)


def test_legitimate_constructors_lists_the_public_signature() -> None:
    alternatives = legitimate_constructors(Child)

    assert len(alternatives) == 1
    assert alternatives[0].endswith("Child(p)")


def test_find_constructor_requires_a_class() -> None:
    with pytest.raises(ResolutionError, match="receiver is not a class"):
        find_constructor(len, ())


def test_find_constructor_keyed_form() -> None:
    assert find_constructor(Base, ({"value": 1},)).keyed is False
    assert find_constructor(Pair, ({"a": 1, "b": 2},)).keyed is False

    keyed = find_constructor(Coord, ({"x": 1, "y": 2},))
    assert keyed.keyed is True
    assert keyed.instantiate(({"x": 1, "y": 2},), {}).y == 2

    with pytest.raises(ResolutionError, match="Available constructors"):
        find_constructor(Coord, ({"x": 1, "z": 2},))
