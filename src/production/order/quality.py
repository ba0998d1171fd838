"""QC gate — command and handler.

Quality control is independent of production: a verdict can arrive at any
time, but an order is Completed only once production is done *and* QC says
Completed. Every verdict re-runs the order rollup.
"""

from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from production import rollup
from production.assignment.assignment import Assignment
from production.domain import production
from production.errors import InvalidRequest
from production.order.order import Order
from production.order.queries import order_snapshot
from production.shared.enums import QcStatus

QC_VERDICTS = tuple(s.value for s in QcStatus)


@production.command(part_of="Order")
class SetQcVerdict:
    """Record a QC verdict for an order."""

    order_number = String(required=True, max_length=50)
    verdict = String(required=True, max_length=20)
    recorded_by = String(max_length=100)


def check_verdict(verdict) -> None:
    if verdict not in QC_VERDICTS:
        raise InvalidRequest({"qc_status": [f"QC verdict must be one of {', '.join(QC_VERDICTS)}; got {verdict!r}"]})


def apply_qc_verdict(order: Order, verdict: str, recorded_by: str | None = None) -> bool:
    """Apply a verdict to an already loaded order. Shared with combined update requests."""
    check_verdict(verdict)
    return order.record_qc_verdict(verdict, recorded_by=recorded_by)


@production.command_handler(part_of=Order)
class QualityControlHandler:
    @handle(SetQcVerdict)
    def set_qc_verdict(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_by_number(command.order_number)
        assignments = current_domain.repository_for(Assignment).for_order(order.order_number)

        apply_qc_verdict(order, command.verdict, recorded_by=command.recorded_by)
        order.settle(assignments)
        snapshot = order_snapshot(order, assignments)
        order.announce_update(None, [], [], rollup.progress(assignments), snapshot)
        repo.add(order)
        return snapshot
