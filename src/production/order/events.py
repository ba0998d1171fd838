"""Order domain events.

Payloads that are naturally nested (item lists, snapshots) travel as JSON
text, the same way the rest of the platform ships collections in events.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from production.domain import production


@production.event(part_of="Order")
class OrderCreated:
    """A dispatcher placed a production order with its items and assignments."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    dispatcher_name = String(required=True)
    customer_name = String(required=True)
    order_status = String(required=True)
    item_count = Integer(required=True)
    assignment_count = Integer(required=True)
    total_units = Integer(required=True)
    created_at = DateTime(required=True)


@production.event(part_of="Order")
class OrderEdited:
    """The order was replaced by an administrative edit."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_name = String(required=True)
    order_status = String(required=True)
    qc_status = String()
    item_count = Integer(required=True)
    completed_units = Integer(required=True)
    total_units = Integer(required=True)
    dropped_keys = Text()  # JSON list of keys whose progress was discarded
    edited_at = DateTime(required=True)


@production.event(part_of="Order")
class OrderDeleted:
    """The order and every item and assignment under it were deleted."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    assignment_count = Integer(required=True)
    deleted_at = DateTime(required=True)


@production.event(part_of="Order")
class TeamStatusChanged:
    """One category of one item moved to a new status."""

    __version__ = 1

    order_number = String(required=True)
    item_id = Identifier(required=True)
    category = String(required=True)
    previous_status = String()
    new_status = String()
    changed_at = DateTime(required=True)


@production.event(part_of="Order")
class QcVerdictRecorded:
    """Quality control recorded a verdict for the order."""

    __version__ = 1

    order_number = String(required=True)
    previous_verdict = String()
    verdict = String(required=True)
    recorded_by = String()
    recorded_at = DateTime(required=True)


@production.event(part_of="Order")
class OrderCompleted:
    """Production finished and QC signed off. Raised once per order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_name = String(required=True)
    completed_at = DateTime(required=True)


@production.event(part_of="Order")
class FulfillmentUpdated:
    """A fulfillment update committed. Carries what observers need to refresh."""

    __version__ = 1

    order_number = String(required=True)
    item_id = Identifier()
    categories = Text()  # JSON list of affected categories
    updated_assignments = Text()  # JSON list of {assignment_id, new_status, total_completed}
    order_status = String(required=True)
    qc_status = String()
    completed_units = Integer(required=True)
    total_units = Integer(required=True)
    percentage = Integer(required=True)
    snapshot = Text(required=True)  # JSON order snapshot
    updated_at = DateTime(required=True)
