from entity_stats.events.bus import EventBus


def test_event_bus_emit_subscribe():
    bus = EventBus()
    received = {}

    def handler(sender, **kwargs):
        received.update(kwargs)

    bus.subscribe("test", handler)
    bus.emit("test", value=42, msg="hello")

    assert received["value"] == 42
    assert received["msg"] == "hello"


def test_event_bus_unsubscribe_stops_delivery():
    bus = EventBus()
    calls: list[int] = []

    def handler(sender, **kwargs):
        calls.append(kwargs["value"])

    bus.subscribe("test", handler)
    bus.emit("test", value=1)
    bus.unsubscribe("test", handler)
    bus.emit("test", value=2)

    assert calls == [1]
    assert bus.subscriber_count("test") == 0


def test_event_bus_emit_without_subscribers_is_noop():
    bus = EventBus()
    bus.emit("nobody_listens", value=1)
    assert bus.subscriber_count("nobody_listens") == 0


def test_handler_may_unsubscribe_during_emission():
    bus = EventBus()
    calls: list[str] = []

    def first(sender, **kwargs):
        calls.append("first")
        bus.unsubscribe("test", second)

    def second(sender, **kwargs):
        calls.append("second")

    bus.subscribe("test", first)
    bus.subscribe("test", second)
    bus.emit("test")
    bus.emit("test")

    assert calls.count("first") == 2
    assert calls.count("second") <= 1
