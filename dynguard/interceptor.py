"""Policy extension surface for embedding applications.

Subclass :class:`Interceptor` and override the hooks for the operation kinds
you care about.  Every hook receives an :class:`Invoker` bound to the rest of
the chain.  Calling it (optionally with different arguments) continues the
operation; returning without calling it substitutes the result, and raising
vetoes the operation.
"""

from __future__ import annotations

from typing import Any, Protocol

from . import registry
from .models import Super

__all__ = ["Interceptor", "Invoker", "ValueFilter"]


class Invoker(Protocol):
    """Continuation handed to each hook."""

    def __call__(self, receiver: Any, name: str | None, /, *args: Any, **kwargs: Any) -> Any:
        ...


class Interceptor:
    """Base interceptor whose hooks all forward unchanged."""

    def on_method_call(
        self, invoker: Invoker, receiver: Any, method: str, /, *args: Any, **kwargs: Any
    ) -> Any:
        """Intercept an instance method call of the form ``foo.bar(...)``."""

        return invoker(receiver, method, *args, **kwargs)

    def on_static_call(
        self, invoker: Invoker, receiver: Any, method: str, /, *args: Any, **kwargs: Any
    ) -> Any:
        """Intercept a static or class method call, like ``Foo.from_bytes(...)``.

        ``receiver`` is the class (or module) the function is looked up on.
        """

        return invoker(receiver, method, *args, **kwargs)

    def on_new_instance(self, invoker: Invoker, receiver: type, /, *args: Any, **kwargs: Any) -> Any:
        """Intercept an object instantiation, like ``Foo(...)``."""

        return invoker(receiver, None, *args, **kwargs)

    def on_super_call(
        self,
        invoker: Invoker,
        sender_type: type,
        receiver: Any,
        method: str,
        /,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Intercept ``super().method(...)`` issued from a method of ``sender_type``."""

        return invoker(Super(sender_type, receiver), method, *args, **kwargs)

    def on_super_constructor(self, invoker: Invoker, receiver: type, /, *args: Any, **kwargs: Any) -> Any:
        """Intercept a chained constructor call to the parent type ``receiver``.

        The return value is ignored.
        """

        return invoker(receiver, None, *args, **kwargs)

    def on_get_property(self, invoker: Invoker, receiver: Any, prop: str) -> Any:
        """Intercept a property read like ``z = foo.bar``."""

        return invoker(receiver, prop)

    def on_set_property(self, invoker: Invoker, receiver: Any, prop: str, value: Any) -> Any:
        """Intercept a property assignment like ``foo.bar = z``.

        The return value is the result of the assignment expression; normally
        the same object as ``value``.
        """

        return invoker(receiver, prop, value)

    def on_get_attribute(self, invoker: Invoker, receiver: Any, attribute: str) -> Any:
        """Intercept a raw attribute read that bypasses ``__getattr__`` and friends."""

        return invoker(receiver, attribute)

    def on_set_attribute(self, invoker: Invoker, receiver: Any, attribute: str, value: Any) -> Any:
        """Intercept a raw attribute write that bypasses ``__setattr__``."""

        return invoker(receiver, attribute, value)

    def on_get_array(self, invoker: Invoker, receiver: Any, index: Any) -> Any:
        """Intercept an item read like ``z = foo[i]``."""

        return invoker(receiver, None, index)

    def on_set_array(self, invoker: Invoker, receiver: Any, index: Any, value: Any) -> Any:
        """Intercept an item assignment like ``foo[i] = z``."""

        return invoker(receiver, None, index, value)

    def register(self) -> None:
        """Register this interceptor in the calling execution context."""

        registry.register(self)

    def unregister(self) -> None:
        registry.unregister(self)


class ValueFilter(Interceptor):
    """Interceptor that only looks at the values flowing in and out of calls.

    A common strategy is to make sure sandboxed code never acquires a
    reference to objects it is not supposed to see.  Override :meth:`filter`
    (or one of the more specific ``filter_*`` methods) and raise to reject a
    value.
    """

    def filter_receiver(self, receiver: Any) -> Any:
        return self.filter(receiver)

    def filter_return_value(self, value: Any) -> Any:
        """Called for return values, new instances and property/attribute reads."""

        return self.filter(value)

    def filter_argument(self, arg: Any) -> Any:
        return self.filter(arg)

    def filter_index(self, index: Any) -> Any:
        return self.filter(index)

    def filter(self, value: Any) -> Any:
        """All the specific ``filter_*`` methods delegate here."""

        return value

    def _filter_arguments(self, args: tuple[Any, ...]) -> tuple[Any, ...]:
        return tuple(self.filter_argument(arg) for arg in args)

    def _filter_kwargs(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        return {key: self.filter_argument(value) for key, value in kwargs.items()}

    def on_method_call(self, invoker, receiver, method, /, *args, **kwargs):
        return self.filter_return_value(
            super().on_method_call(
                invoker,
                self.filter_receiver(receiver),
                method,
                *self._filter_arguments(args),
                **self._filter_kwargs(kwargs),
            )
        )

    def on_static_call(self, invoker, receiver, method, /, *args, **kwargs):
        return self.filter_return_value(
            super().on_static_call(
                invoker,
                self.filter_receiver(receiver),
                method,
                *self._filter_arguments(args),
                **self._filter_kwargs(kwargs),
            )
        )

    def on_new_instance(self, invoker, receiver, /, *args, **kwargs):
        return self.filter_return_value(
            super().on_new_instance(
                invoker,
                self.filter_receiver(receiver),
                *self._filter_arguments(args),
                **self._filter_kwargs(kwargs),
            )
        )

    def on_super_call(self, invoker, sender_type, receiver, method, /, *args, **kwargs):
        return self.filter_return_value(
            super().on_super_call(
                invoker,
                sender_type,
                self.filter_receiver(receiver),
                method,
                *self._filter_arguments(args),
                **self._filter_kwargs(kwargs),
            )
        )

    def on_get_property(self, invoker, receiver, prop):
        return self.filter_return_value(
            super().on_get_property(invoker, self.filter_receiver(receiver), prop)
        )

    def on_set_property(self, invoker, receiver, prop, value):
        return self.filter_return_value(
            super().on_set_property(
                invoker, self.filter_receiver(receiver), prop, self.filter_argument(value)
            )
        )

    def on_get_attribute(self, invoker, receiver, attribute):
        return self.filter_return_value(
            super().on_get_attribute(invoker, self.filter_receiver(receiver), attribute)
        )

    def on_set_attribute(self, invoker, receiver, attribute, value):
        return self.filter_return_value(
            super().on_set_attribute(
                invoker, self.filter_receiver(receiver), attribute, self.filter_argument(value)
            )
        )

    def on_get_array(self, invoker, receiver, index):
        return self.filter_return_value(
            super().on_get_array(invoker, self.filter_receiver(receiver), self.filter_index(index))
        )

    def on_set_array(self, invoker, receiver, index, value):
        return self.filter_return_value(
            super().on_set_array(
                invoker,
                self.filter_receiver(receiver),
                self.filter_index(index),
                self.filter_argument(value),
            )
        )
