"""Order editing — replace-and-recreate with ledger carry-over.

An edit replaces every item and assignment of the order. Progress survives
only when a new assignment has the same key (item name, category and spec
fields) as an old one: the old ledger is copied onto the replacement. Any
other old progress is discarded. That is logged and listed in the
``OrderEdited`` event, because a renamed spec loses its history silently.
"""

from collections import defaultdict

import structlog
from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from production import rollup
from production.assignment.assignment import Assignment
from production.domain import production
from production.order.costs import estimate_costs, merge_config
from production.order.creation import build_assignments, cost_lines, item_outline, parse_items
from production.order.order import Order
from production.order.queries import order_snapshot
from production.shared.payloads import load_json

logger = structlog.get_logger(__name__)


@production.command(part_of="Order")
class EditOrder:
    """Replace the items and assignments of an order."""

    order_number = String(required=True, max_length=50)
    dispatcher_name = String(max_length=100)
    customer_name = String(max_length=100)
    order_status = String(max_length=20)
    items = Text(required=True)  # JSON, same shape as CreateOrder.items
    cost_config = Text()


def _describe(key: tuple) -> str:
    return "/".join(part for part in key if part)


@production.command_handler(part_of=Order)
class EditOrderHandler:
    @handle(EditOrder)
    def edit_order(self, command):
        repo = current_domain.repository_for(Order)
        assignment_repo = current_domain.repository_for(Assignment)

        order = repo.get_by_number(command.order_number)
        old_assignments = assignment_repo.for_order(order.order_number)
        old_item_names = {str(item.id): item.name for item in order.items or []}

        previous_by_key = defaultdict(list)
        for old in sorted(old_assignments, key=lambda a: a.position or 0):
            previous_by_key[old.identity_key(old_item_names.get(str(old.item_id), ""))].append(old)

        parsed_items = parse_items(command.items)
        overrides = load_json(command.cost_config, "cost_config") if command.cost_config else None
        cost_settings = merge_config(overrides, base=order.cost_settings())
        new_items = order.revise(
            items_data=item_outline(parsed_items),
            dispatcher_name=command.dispatcher_name,
            customer_name=command.customer_name,
            order_status=command.order_status,
            cost_estimate=estimate_costs(cost_lines(parsed_items), cost_settings),
            cost_config=cost_settings,
        )

        assignments = []
        for assignment, item_name in build_assignments(order, new_items, parsed_items):
            matches = previous_by_key.get(assignment.identity_key(item_name))
            if matches:
                assignment.carry_over(matches.pop(0))
            assignments.append(assignment)

        dropped = [
            _describe(key)
            for key, leftovers in previous_by_key.items()
            for old in leftovers
            if (old.total_completed_qty or 0) > 0
        ]
        if dropped:
            logger.warning(
                "Order edit discarded recorded progress",
                order_number=order.order_number,
                dropped_keys=dropped,
            )

        by_item = rollup.group_by_item(assignments)
        for item in new_items:
            order.refresh_item_statuses(item, by_item.get(str(item.id), []))
        order.settle(assignments, reopen=True)
        order.announce_edit(rollup.progress(assignments), dropped)

        for old in old_assignments:
            assignment_repo.remove(old)
        repo.add(order)
        for assignment in assignments:
            assignment_repo.add(assignment)

        logger.info(
            "Order edited",
            order_number=order.order_number,
            assignments=len(assignments),
            order_status=order.order_status,
        )
        return order_snapshot(order, assignments)
