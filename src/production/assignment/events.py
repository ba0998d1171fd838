"""Assignment domain events: facts about ledger appends and completion."""

from protean.fields import DateTime, Identifier, Integer, String

from production.domain import production


@production.event(part_of="Assignment")
class CompletionRecorded:
    """A team reported a partial completion against an assignment."""

    __version__ = 1

    assignment_id = Identifier(required=True)
    order_number = String(required=True)
    item_id = Identifier(required=True)
    category = String(required=True)
    quantity = Integer(required=True)
    completed_by = String(required=True)
    completed_at = DateTime(required=True)
    total_completed_qty = Integer(required=True)
    status = String(required=True)


@production.event(part_of="Assignment")
class AssignmentCompleted:
    """The ledger of an assignment reached the ordered quantity."""

    __version__ = 1

    assignment_id = Identifier(required=True)
    order_number = String(required=True)
    item_id = Identifier(required=True)
    category = String(required=True)
    quantity = Integer(required=True)
    completed_at = DateTime(required=True)
