"""Broadcast port — abstract interface for real-time fan-out.

Messages are published to role-scoped topics:

    dispatch                 full order snapshots, for dispatchers
    team:<category>          the slice of an order one team works on
    customer:<order_number>  the customer's step and percentage view
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

DISPATCH_TOPIC = "dispatch"


def team_topic(category: str) -> str:
    return f"team:{category}"


def customer_topic(order_number: str) -> str:
    return f"customer:{order_number}"


class BroadcastPort(ABC):
    """Abstract interface for broadcast adapters."""

    @abstractmethod
    def publish(self, topic: str, message: dict) -> int:
        """Deliver ``message`` to every subscriber of ``topic``.

        Returns:
            number of subscribers reached
        """
        ...

    @abstractmethod
    def subscribe(self, topic: str, callback: Callable[[dict], None]) -> str:
        """Register ``callback`` for ``topic``.

        Returns:
            subscription id, used to unsubscribe
        """
        ...

    @abstractmethod
    def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a subscription. Returns False if it was unknown."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Drop every subscription."""
        ...
