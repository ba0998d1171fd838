"""Fan-out handler — publishes committed fulfillment changes to live viewers.

Each audience gets only what it is allowed to see: dispatchers the whole
order, a team the items and assignments of its own category, a customer
the step and percentage. Broadcast failures are logged; the update that
triggered them has already committed.
"""

import json

import structlog
from protean.utils.mixins import handle

from production import rollup
from production.broadcast import get_hub
from production.broadcast.port import DISPATCH_TOPIC, customer_topic, team_topic
from production.domain import production
from production.order.events import FulfillmentUpdated, OrderDeleted
from production.order.order import Order

logger = structlog.get_logger(__name__)


def team_slice(snapshot: dict, category: str) -> dict:
    """The part of an order snapshot that belongs to one category."""
    items = []
    for item in snapshot["items"]:
        assignments = item["team_assignments"].get(category) or []
        if not assignments:
            continue
        items.append(
            {
                "item_id": item["item_id"],
                "name": item["name"],
                "position": item["position"],
                "status": item["team_status"].get(category),
                "assignments": assignments,
            }
        )
    return {
        "order_number": snapshot["order_number"],
        "category": category,
        "order_status": snapshot["order_status"],
        "items": items,
    }


def customer_view(event: FulfillmentUpdated) -> dict:
    units = rollup.Progress(event.completed_units, event.total_units, event.percentage)
    step, title = rollup.customer_step(event.order_status, event.qc_status, units)
    return {
        "order_number": event.order_number,
        "order_status": event.order_status,
        "current_step": step,
        "step_title": title,
        "total_steps": len(rollup.STEPS),
        "percentage": event.percentage,
    }


@production.event_handler(part_of=Order)
class FulfillmentBroadcaster:
    """Routes order changes to dispatch, team and customer topics."""

    @handle(FulfillmentUpdated)
    def on_fulfillment_updated(self, event: FulfillmentUpdated) -> None:
        snapshot = json.loads(event.snapshot)
        categories = json.loads(event.categories) if event.categories else []
        messages = [
            (
                DISPATCH_TOPIC,
                {
                    "type": "fulfillment_updated",
                    "order_number": event.order_number,
                    "item_id": str(event.item_id) if event.item_id else None,
                    "categories": categories,
                    "updated_assignments": json.loads(event.updated_assignments or "[]"),
                    "order": snapshot,
                },
            ),
            *(
                (team_topic(category), {"type": "fulfillment_updated", **team_slice(snapshot, category)})
                for category in categories
            ),
            (customer_topic(event.order_number), {"type": "progress", **customer_view(event)}),
        ]
        _publish_all(messages, order_number=event.order_number)

    @handle(OrderDeleted)
    def on_order_deleted(self, event: OrderDeleted) -> None:
        _publish_all(
            [(DISPATCH_TOPIC, {"type": "order_deleted", "order_number": event.order_number})],
            order_number=event.order_number,
        )


def _publish_all(messages: list[tuple[str, dict]], order_number: str) -> None:
    try:
        hub = get_hub()
    except ValueError as e:
        logger.error("Broadcast hub not configured", order_number=order_number, error=str(e))
        return

    for topic, message in messages:
        try:
            hub.publish(topic, message)
        except Exception as e:
            logger.error(
                "Broadcast failed",
                order_number=order_number,
                topic=topic,
                error=str(e),
            )
