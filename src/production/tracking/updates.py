"""Fulfillment update coordinator — command and handler.

A team (or QC) submits one request; everything it touches is written in a
single unit of work:

    1. append every ledger entry (capacity checked entry by entry)
    2. recompute the item's category statuses
    3. apply the QC verdict, if any
    4. recompute the order status

Rollup always reads the stored assignments with this request's own writes
laid over them, so a batch sees its earlier entries.
"""

from dataclasses import dataclass
from datetime import datetime

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from production import rollup
from production.assignment.assignment import Assignment
from production.domain import production
from production.errors import Conflict, InvalidRequest, NotFound
from production.order.order import Order
from production.order.quality import apply_qc_verdict, check_verdict
from production.order.queries import order_snapshot
from production.shared.enums import AssignmentStatus
from production.shared.payloads import load_json

_ASSIGNMENT_STATUSES = tuple(s.value for s in AssignmentStatus)


@dataclass(frozen=True)
class ProgressUpdate:
    """One validated entry of an update request."""

    assignment_id: str
    quantity: int
    author: str
    completed_at: datetime | None
    expected_total: int
    expected_status: str


@production.command(part_of="Order")
class ApplyProductionUpdates:
    """Record production progress and/or a QC verdict for an order."""

    order_number = String(required=True, max_length=50)
    item_id = Identifier()
    updates = Text()  # JSON list of {assignment_id, entry, new_total_completed, new_status}
    qc_status = String(max_length=20)
    submitted_by = String(max_length=100)


def _fail(index: int, field: str, message: str):
    raise InvalidRequest({"updates": [f"updates[{index}].{field}: {message}"]})


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_update(index: int, raw) -> ProgressUpdate:
    if not isinstance(raw, dict):
        raise InvalidRequest({"updates": [f"updates[{index}]: must be an object"]})

    assignment_id = raw.get("assignment_id")
    if not assignment_id or not isinstance(assignment_id, str):
        _fail(index, "assignment_id", "is required")

    entry = raw.get("entry")
    if not isinstance(entry, dict):
        _fail(index, "entry", "is required")
    quantity = entry.get("quantity")
    if not _is_int(quantity) or quantity <= 0:
        _fail(index, "entry.quantity", "must be a positive integer")
    author = entry.get("author")
    if not author or not isinstance(author, str):
        _fail(index, "entry.author", "is required")

    completed_at = entry.get("date")
    if isinstance(completed_at, str):
        try:
            completed_at = datetime.fromisoformat(completed_at)
        except ValueError:
            _fail(index, "entry.date", f"'{completed_at}' is not an ISO-8601 timestamp")
    elif completed_at is not None and not isinstance(completed_at, datetime):
        _fail(index, "entry.date", "must be an ISO-8601 timestamp")

    expected_total = raw.get("new_total_completed")
    if not _is_int(expected_total) or expected_total < 0:
        _fail(index, "new_total_completed", "must be a non-negative integer")
    expected_status = raw.get("new_status")
    if expected_status not in _ASSIGNMENT_STATUSES:
        _fail(index, "new_status", f"must be one of {', '.join(_ASSIGNMENT_STATUSES)}")

    return ProgressUpdate(
        assignment_id=assignment_id,
        quantity=quantity,
        author=author,
        completed_at=completed_at,
        expected_total=expected_total,
        expected_status=expected_status,
    )


def parse_updates(raw) -> list[ProgressUpdate]:
    """Validate the structure of every update before anything is loaded."""
    if raw is None or raw == "":
        return []
    updates = load_json(raw, "updates")
    if not isinstance(updates, list):
        raise InvalidRequest({"updates": ["updates must be a list"]})
    return [_parse_update(index, update) for index, update in enumerate(updates)]


def check_request(item_id, updates: list[ProgressUpdate], qc_status) -> None:
    """Reject request shapes that carry nothing to do or lack an item."""
    if not updates and qc_status is None:
        raise InvalidRequest({"_request": ["Provide production updates, a QC verdict, or both"]})
    if updates and not item_id:
        raise InvalidRequest({"item_id": ["item_id is required when updates are provided"]})
    if qc_status is not None:
        check_verdict(qc_status)


def _overlay(stored: list[Assignment], written: dict[str, Assignment]) -> list[Assignment]:
    merged = {str(a.id): a for a in stored}
    merged.update(written)
    return list(merged.values())


@production.command_handler(part_of=Order)
class FulfillmentUpdateHandler:
    @handle(ApplyProductionUpdates)
    def apply_production_updates(self, command):
        updates = parse_updates(command.updates)
        check_request(command.item_id, updates, command.qc_status)

        order_repo = current_domain.repository_for(Order)
        assignment_repo = current_domain.repository_for(Assignment)
        order = order_repo.get_by_number(command.order_number)

        written: dict[str, Assignment] = {}
        if updates:
            item = order.find_item(command.item_id)
            for update in updates:
                assignment = written.get(update.assignment_id) or assignment_repo.get_assignment(update.assignment_id)
                if str(assignment.item_id) != str(item.id) or assignment.order_number != order.order_number:
                    raise NotFound(
                        "Assignment",
                        update.assignment_id,
                        detail=f"on item {item.id} of order {order.order_number}",
                    )

                new_total, new_status = assignment.record_completion(
                    update.quantity,
                    update.author,
                    completed_at=update.completed_at,
                )
                if (new_total, new_status) != (update.expected_total, update.expected_status):
                    raise Conflict(
                        f"Assignment {assignment.id} is now at {new_total} ({new_status}); "
                        f"request expected {update.expected_total} ({update.expected_status})",
                        order_number=order.order_number,
                        assignment_id=str(assignment.id),
                    )
                written[str(assignment.id)] = assignment

            order.refresh_item_statuses(item, _overlay(assignment_repo.for_item(item.id), written))

        if command.qc_status is not None:
            apply_qc_verdict(order, command.qc_status, recorded_by=command.submitted_by)

        assignments = _overlay(assignment_repo.for_order(order.order_number), written)
        order.settle(assignments)

        updated = [
            {
                "assignment_id": assignment_id,
                "new_status": assignment.status,
                "total_completed": assignment.total_completed_qty,
            }
            for assignment_id, assignment in written.items()
        ]
        snapshot = order_snapshot(order, assignments)
        order.announce_update(
            command.item_id,
            sorted({a.category for a in written.values()}),
            updated,
            rollup.progress(assignments),
            snapshot,
        )

        for assignment in written.values():
            assignment_repo.add(assignment)
        order_repo.add(order)

        return {"order": snapshot, "updated_assignments": updated}
