"""Tests for the broadcast adapter abstraction and topic scoping."""

import pytest

from production.broadcast import get_hub, reset_hub
from production.broadcast.dispatch import team_slice
from production.broadcast.memory_hub import InMemoryHub
from production.broadcast.port import DISPATCH_TOPIC, customer_topic, team_topic


class TestInMemoryHub:
    def test_publish_reaches_subscribers_of_topic_only(self):
        hub = InMemoryHub()
        glass, caps = [], []
        hub.subscribe(team_topic("glass"), glass.append)
        hub.subscribe(team_topic("caps"), caps.append)

        reached = hub.publish(team_topic("glass"), {"n": 1})

        assert reached == 1
        assert glass == [{"n": 1}]
        assert caps == []

    def test_unsubscribe(self):
        hub = InMemoryHub()
        received = []
        subscription = hub.subscribe(DISPATCH_TOPIC, received.append)

        assert hub.unsubscribe(subscription) is True
        hub.publish(DISPATCH_TOPIC, {"n": 1})

        assert received == []
        assert hub.subscriber_count(DISPATCH_TOPIC) == 0
        assert hub.unsubscribe(subscription) is False

    def test_failing_subscriber_does_not_stop_others(self):
        hub = InMemoryHub()
        received = []

        def broken(_message):
            raise RuntimeError("socket closed")

        hub.subscribe(DISPATCH_TOPIC, broken)
        hub.subscribe(DISPATCH_TOPIC, received.append)

        assert hub.publish(DISPATCH_TOPIC, {"n": 1}) == 1
        assert received == [{"n": 1}]

    def test_configured_failure(self):
        hub = InMemoryHub()
        hub.configure(should_succeed=False, failure_reason="down")
        with pytest.raises(ConnectionError, match="down"):
            hub.publish(DISPATCH_TOPIC, {})

    def test_published_log_per_topic(self):
        hub = InMemoryHub()
        hub.publish(customer_topic("PO-1"), {"step": 1})
        hub.publish(DISPATCH_TOPIC, {"x": 1})
        assert hub.messages_for("customer:PO-1") == [{"step": 1}]


class TestHubSingleton:
    def test_same_instance_until_reset(self):
        hub = get_hub()
        assert get_hub() is hub
        reset_hub()
        assert get_hub() is not hub

    def test_reset_drops_subscriptions(self):
        hub = get_hub()
        hub.subscribe(DISPATCH_TOPIC, lambda _m: None)
        reset_hub()
        assert hub.subscriber_count(DISPATCH_TOPIC) == 0

    def test_unknown_adapter(self, monkeypatch):
        reset_hub()
        monkeypatch.setenv("BROADCAST_ADAPTER", "websocket-cluster")
        with pytest.raises(ValueError):
            get_hub()


class TestTeamSlice:
    def test_only_the_category_is_visible(self):
        snapshot = {
            "order_number": "PO-1",
            "order_status": "Pending",
            "items": [
                {
                    "item_id": "i1",
                    "name": "Serum Bottle",
                    "position": 0,
                    "team_status": {"glass": "Pending", "caps": "Completed"},
                    "team_assignments": {"glass": [{"assignment_id": "g1"}], "caps": [{"assignment_id": "c1"}]},
                },
                {
                    "item_id": "i2",
                    "name": "Carton",
                    "position": 1,
                    "team_status": {"glass": None, "boxes": "Pending"},
                    "team_assignments": {"glass": [], "boxes": [{"assignment_id": "b1"}]},
                },
            ],
        }

        view = team_slice(snapshot, "glass")

        assert view["category"] == "glass"
        assert [i["item_id"] for i in view["items"]] == ["i1"]
        assert view["items"][0]["status"] == "Pending"
        assert view["items"][0]["assignments"] == [{"assignment_id": "g1"}]
