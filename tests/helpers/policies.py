"""Interceptors shared by the test-suite."""

from __future__ import annotations

from collections.abc import Iterable

from dynguard import AccessDeniedError, Interceptor


class PassThrough(Interceptor):
    """Inherits every default hook."""


class CallLog(Interceptor):
    """Logs ``Type.method`` for every call it forwards."""

    def __init__(self, log: list[str] | None = None) -> None:
        self.log = log if log is not None else []

    def on_method_call(self, invoker, receiver, method, /, *args, **kwargs):
        self.log.append(f"{type(receiver).__name__}.{method}")
        return super().on_method_call(invoker, receiver, method, *args, **kwargs)

    def on_static_call(self, invoker, receiver, method, /, *args, **kwargs):
        self.log.append(f"{receiver.__name__}:{method}")
        return super().on_static_call(invoker, receiver, method, *args, **kwargs)

    def on_new_instance(self, invoker, receiver, /, *args, **kwargs):
        self.log.append(f"new {receiver.__name__}")
        return super().on_new_instance(invoker, receiver, *args, **kwargs)

    def on_super_constructor(self, invoker, receiver, /, *args, **kwargs):
        self.log.append(f"super new {receiver.__name__}")
        return super().on_super_constructor(invoker, receiver, *args, **kwargs)


class DenyMethod(Interceptor):
    """Refuses calls of the given method names."""

    def __init__(self, methods: Iterable[str] = ()) -> None:
        self.methods = frozenset(methods)

    def on_method_call(self, invoker, receiver, method, /, *args, **kwargs):
        if method in self.methods:
            raise AccessDeniedError(f"{method} is not allowed")
        return super().on_method_call(invoker, receiver, method, *args, **kwargs)


class NotAnInterceptor:
    def __init__(self, **options) -> None:
        self.options = options
