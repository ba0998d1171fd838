"""Completion rollup: assignment -> item category -> order.

Every function here is pure. Statuses are derived from assignment snapshots
and the QC verdict only, so calling a function twice with the same input
gives the same answer and nothing is cached between requests.

A category with no assignments is *not applicable*: its status is ``None``
and it never blocks completion of the item or the order. Partial progress
does not move a status forward on its own; only full completion does.
"""

from collections import defaultdict
from collections.abc import Iterable
from typing import NamedTuple

from production.shared.enums import AssignmentStatus, OrderStatus, QcStatus, TeamStatus


class Progress(NamedTuple):
    completed_units: int
    total_units: int
    percentage: int


# Customer-facing delivery steps
STEPS = {
    1: "Order Received",
    2: "In Production",
    3: "Production Complete",
    4: "Quality Check",
    5: "Completed",
}


def _is_completed(assignment) -> bool:
    return assignment.status == AssignmentStatus.COMPLETED.value


def category_status(assignments: Iterable, previous: str | None = TeamStatus.PENDING.value) -> str | None:
    """Status of one category of one item.

    ``previous`` is the stored status. A non-Completed value survives until
    every assignment is done; a stale Completed (an edit added unfinished
    work) reverts to Pending.
    """
    assignments = list(assignments)
    if not assignments:
        return None
    if all(_is_completed(a) for a in assignments):
        return TeamStatus.COMPLETED.value
    if previous in (TeamStatus.PENDING.value, TeamStatus.IN_PROGRESS.value):
        return previous
    return TeamStatus.PENDING.value


def group_by_category(assignments: Iterable) -> dict[str, list]:
    grouped = defaultdict(list)
    for assignment in assignments:
        grouped[assignment.category].append(assignment)
    return dict(grouped)


def group_by_item(assignments: Iterable) -> dict[str, list]:
    grouped = defaultdict(list)
    for assignment in assignments:
        grouped[str(assignment.item_id)].append(assignment)
    return dict(grouped)


def is_production_complete(assignments: Iterable) -> bool:
    """True when every applicable category of every item is Completed.

    Empty categories are vacuous, so this reduces to "every assignment is
    Completed" and an order without assignments is trivially complete.
    """
    return all(_is_completed(a) for a in assignments)


def order_status(
    assignments: Iterable,
    qc_status: str | None,
    previous: str | None = OrderStatus.PENDING.value,
    reopen: bool = False,
) -> str:
    """Order-level status: production rollup first, then the QC gate.

    Completed is reached only when production is complete *and* QC has
    signed off. Otherwise the last non-Completed value is kept. A Completed
    order stays Completed unless ``reopen`` is set by an administrative edit.
    """
    previous = previous or OrderStatus.PENDING.value
    if is_production_complete(assignments) and qc_status == QcStatus.COMPLETED.value:
        return OrderStatus.COMPLETED.value
    if previous == OrderStatus.COMPLETED.value:
        return OrderStatus.IN_PROGRESS.value if reopen else previous
    return previous


def progress(assignments: Iterable) -> Progress:
    completed = 0
    total = 0
    for assignment in assignments:
        total += assignment.quantity
        completed += min(assignment.total_completed_qty or 0, assignment.quantity)
    percentage = 100 if total == 0 else (completed * 100) // total
    return Progress(completed, total, percentage)


def customer_step(order_status_value: str, qc_status: str | None, units: Progress) -> tuple[int, str]:
    """Map an order to the five-step view shown to customers."""
    production_done = units.total_units > 0 and units.completed_units >= units.total_units
    if order_status_value == OrderStatus.COMPLETED.value:
        step = 5
    elif production_done:
        step = 4 if qc_status is not None else 3
    elif units.completed_units > 0 or order_status_value == OrderStatus.IN_PROGRESS.value:
        step = 2
    else:
        step = 1
    return step, STEPS[step]
