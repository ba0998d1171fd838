"""In-memory broadcast hub — single-process fan-out for development and tests.

Keeps a log of everything published so tests can inspect what each topic
received. Can be configured to fail, to exercise error paths.
"""

from collections import defaultdict
from collections.abc import Callable
from uuid import uuid4

import structlog

from production.broadcast.port import BroadcastPort

logger = structlog.get_logger(__name__)


class InMemoryHub(BroadcastPort):
    def __init__(self):
        self._subscribers: dict[str, dict[str, Callable[[dict], None]]] = defaultdict(dict)
        self._topics_by_subscription: dict[str, str] = {}
        self.published: list[tuple[str, dict]] = []
        self.should_succeed = True
        self.failure_reason = "Broadcast hub unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Broadcast hub unavailable"):
        """Configure the hub behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def publish(self, topic: str, message: dict) -> int:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)

        self.published.append((topic, message))
        reached = 0
        for subscription_id, callback in list(self._subscribers.get(topic, {}).items()):
            try:
                callback(message)
                reached += 1
            except Exception as e:
                logger.error(
                    "Broadcast subscriber failed",
                    topic=topic,
                    subscription_id=subscription_id,
                    error=str(e),
                )
        return reached

    def subscribe(self, topic: str, callback: Callable[[dict], None]) -> str:
        subscription_id = uuid4().hex
        self._subscribers[topic][subscription_id] = callback
        self._topics_by_subscription[subscription_id] = topic
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        topic = self._topics_by_subscription.pop(subscription_id, None)
        if topic is None:
            return False
        self._subscribers[topic].pop(subscription_id, None)
        if not self._subscribers[topic]:
            del self._subscribers[topic]
        return True

    def close(self) -> None:
        self._subscribers.clear()
        self._topics_by_subscription.clear()
        self.published.clear()

    def messages_for(self, topic: str) -> list[dict]:
        return [message for t, message in self.published if t == topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, {}))
