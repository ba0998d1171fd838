"""Order deletion — the order subtree goes in one unit of work."""

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from production.assignment.assignment import Assignment
from production.domain import production
from production.order.order import Order

logger = structlog.get_logger(__name__)


@production.command(part_of="Order")
class DeleteOrder:
    """Delete an order with every item and assignment under it."""

    order_number = String(required=True, max_length=50)


@production.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        repo = current_domain.repository_for(Order)
        assignment_repo = current_domain.repository_for(Assignment)

        order = repo.get_by_number(command.order_number)
        assignments = assignment_repo.for_order(order.order_number)

        for assignment in assignments:
            assignment_repo.remove(assignment)

        order.mark_deleted(assignment_count=len(assignments))
        for item in list(order.items or []):
            order.remove_items(item)
        repo.add(order)
        repo.remove(order)

        logger.info(
            "Order deleted",
            order_number=command.order_number,
            assignments=len(assignments),
        )
        return {"order_number": command.order_number, "deleted_assignments": len(assignments)}
