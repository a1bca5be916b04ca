from __future__ import annotations

from dynguard import (
    OperationKind,
    TraceEvent,
    TracingInterceptor,
    checked_call,
    checked_constructor,
    checked_get_array,
    checked_get_attribute,
    checked_get_property,
    checked_set_array,
    checked_set_attribute,
    checked_set_property,
    checked_static_call,
    registry,
)


class Widget:
    size = 1

    def resize(self, width, height=None):
        return width

    @staticmethod
    def build(kind):
        return Widget()


def test_trace_lines_cover_every_kind() -> None:
    trace = TracingInterceptor()
    registry.register(trace)
    widget = checked_constructor(Widget)

    checked_call(widget, False, False, "resize", 3, height="tall")
    checked_static_call(Widget, "build", "box")
    checked_get_property(widget, False, False, "size")
    checked_set_property(widget, "size", False, False, "=", 2.0)
    checked_get_attribute(widget, False, False, "size")
    checked_set_attribute(widget, "size", False, False, "=", None)
    checked_get_array({"k": 1}, "k")
    checked_set_array([0], 0, "=", "v")

    assert trace.lines == [
        "new Widget()",
        "Widget.resize(int,height=str)",
        "Widget:build(str)",
        "Widget.size",
        "Widget.size=float",
        "Widget.@size",
        "Widget.@size=None",
        "dict[str]",
        "list[int]=str",
    ]
    assert str(trace).splitlines() == trace.lines


def test_events_carry_kind_and_payload() -> None:
    trace = TracingInterceptor()
    registry.register(trace)

    checked_call("abc", False, False, "upper")

    (event,) = trace.events
    assert isinstance(event, TraceEvent)
    assert event.kind is OperationKind.METHOD_CALL
    assert event.payload["method"] == "upper"


def test_sink_receives_each_event_and_reset_clears() -> None:
    received: list[TraceEvent] = []
    trace = TracingInterceptor(sink=received.append)
    registry.register(trace)

    checked_get_property("abc", False, False, "__class__")

    assert [event.line for event in received] == ["str.__class__"]
    trace.reset()
    assert trace.lines == []
    assert len(received) == 1


def test_tracing_does_not_change_results() -> None:
    registry.register(TracingInterceptor())

    assert checked_call("a,b", False, False, "split", ",") == ["a", "b"]
