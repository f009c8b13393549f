"""Tests for the event bus."""

from citysiege.util.events import EventBus, SiegeEnded, SiegeStarted


def _ended(event_id: int = 1) -> SiegeEnded:
    return SiegeEnded(event_id=event_id, city="Stormwind", outcome="defenders", forced=False)


class TestEventBus:
    def test_emit_triggers_handler(self):
        bus = EventBus()
        received = []
        bus.on(SiegeEnded, lambda e: received.append(e.event_id))
        bus.emit(_ended(42))
        assert received == [42]

    def test_no_cross_event(self):
        bus = EventBus()
        received = []
        bus.on(SiegeEnded, lambda e: received.append("ended"))
        bus.emit(SiegeStarted(event_id=1, city="Stormwind", attackers=23, defenders=10))
        assert received == []

    def test_multiple_handlers(self):
        bus = EventBus()
        a, b = [], []
        bus.on(SiegeEnded, lambda e: a.append(1))
        bus.on(SiegeEnded, lambda e: b.append(2))
        bus.emit(_ended())
        assert a == [1] and b == [2]

    def test_off_removes_handler(self):
        bus = EventBus()
        received = []
        handler = lambda e: received.append(1)
        bus.on(SiegeEnded, handler)
        bus.off(SiegeEnded, handler)
        bus.emit(_ended())
        assert received == []

    def test_failing_handler_does_not_stop_others(self):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.on(SiegeEnded, broken)
        bus.on(SiegeEnded, lambda e: received.append(e.outcome))
        bus.emit(_ended())
        assert received == ["defenders"]

    def test_clear(self):
        bus = EventBus()
        bus.on(SiegeEnded, lambda e: None)
        bus.clear()
        # Should not raise
        bus.emit(_ended())
