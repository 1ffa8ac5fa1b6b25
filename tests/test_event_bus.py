"""Tests for sentinel.events — in-process event bus."""

from sentinel.events import ALL_EVENTS, REMINDER, EventBus, _make_envelope


class TestMakeEnvelope:
    def test_required_fields(self):
        env = _make_envelope("codes.updated", {"codes": {}}, source="ticker")
        assert env["type"] == "codes.updated"
        assert env["source"] == "ticker"
        assert env["payload"] == {"codes": {}}
        assert "timestamp" in env


class TestEventBus:
    def test_publish_to_subscriber(self):
        bus = EventBus()
        seen = []
        bus.subscribe("vault.pasted", seen.append)
        bus.publish("vault.pasted", {"indices": [1]}, source="vault")
        assert seen[0]["payload"] == {"indices": [1]}

    def test_other_types_not_delivered(self):
        bus = EventBus()
        seen = []
        bus.subscribe("vault.pasted", seen.append)
        bus.publish("codes.updated")
        assert seen == []

    def test_wildcard(self):
        bus = EventBus()
        seen = []
        bus.subscribe(ALL_EVENTS, seen.append)
        bus.publish("a")
        bus.publish("b")
        assert [e["type"] for e in seen] == ["a", "b"]

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe("a", seen.append)
        unsubscribe()
        unsubscribe()
        bus.publish("a")
        assert seen == []

    def test_handler_error_is_not_fatal(self, caplog):
        bus = EventBus()
        seen = []

        def _boom(event):
            raise RuntimeError("render failed")

        bus.subscribe("a", _boom)
        bus.subscribe("a", seen.append)
        bus.publish("a")
        assert len(seen) == 1
        assert "handler error" in caplog.text

    def test_notify(self):
        bus = EventBus()
        seen = []
        bus.subscribe("notify", seen.append)
        bus.notify("Corrupt Nexus File", REMINDER, category="corrupt_backup")
        assert seen[0]["payload"] == {
            "message": "Corrupt Nexus File",
            "level": "reminder",
            "category": "corrupt_backup",
        }

    def test_clear(self):
        bus = EventBus()
        seen = []
        bus.subscribe("a", seen.append)
        bus.clear()
        bus.publish("a")
        assert seen == []
