"""Read side of the order tree: snapshots, listings and per-team views.

Snapshots are plain JSON-ready dicts, derived on every call from the stored
Order and its Assignments.
"""

from protean.utils.globals import current_domain

from production import rollup
from production.assignment.assignment import Assignment
from production.errors import InvalidRequest
from production.order.order import Item, Order
from production.shared.enums import CATEGORIES


def _iso(value):
    return value.isoformat() if value is not None else None


def assignment_snapshot(assignment: Assignment) -> dict:
    return {
        "assignment_id": str(assignment.id),
        "item_id": str(assignment.item_id),
        "category": assignment.category,
        "position": assignment.position,
        "team": assignment.team,
        "spec": assignment.spec.to_dict() if assignment.spec else {},
        "quantity": assignment.quantity,
        "status": assignment.status,
        "tracking": {
            "total_completed_qty": assignment.total_completed_qty or 0,
            "remaining": assignment.remaining,
            "completed_entries": [
                {
                    "quantity": entry.quantity,
                    "completed_at": _iso(entry.completed_at),
                    "completed_by": entry.completed_by,
                }
                for entry in assignment.ledger()
            ],
        },
    }


def item_snapshot(item: Item, assignments: list[Assignment], categories=CATEGORIES) -> dict:
    by_category = rollup.group_by_category(assignments)
    return {
        "item_id": str(item.id),
        "name": item.name,
        "position": item.position,
        "team_status": {c: item.status_of(c) for c in categories},
        "team_assignments": {
            c: [assignment_snapshot(a) for a in sorted(by_category.get(c, []), key=lambda a: a.position or 0)]
            for c in categories
        },
    }


def order_snapshot(order: Order, assignments: list[Assignment], categories=CATEGORIES) -> dict:
    """Nested view of an order: items, their category statuses and assignments."""
    by_item = rollup.group_by_item(assignments)
    progress = rollup.progress(assignments)
    cost = order.cost_estimate
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "dispatcher_name": order.dispatcher_name,
        "customer_name": order.customer_name,
        "order_status": order.order_status,
        "qc_status": order.qc_status,
        "cost_estimate": (
            {
                "items_cost": cost.items_cost,
                "shipping_and_handling": cost.shipping_and_handling,
                "taxes": cost.taxes,
                "additional_fees": cost.additional_fees,
                "total": cost.total,
            }
            if cost
            else None
        ),
        "cost_config": order.cost_settings() or None,
        "progress": progress._asdict(),
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
        "completed_at": _iso(order.completed_at),
        "items": [
            item_snapshot(item, by_item.get(str(item.id), []), categories=categories)
            for item in order.ordered_items()
        ],
    }


def load_order(order_number: str) -> tuple[Order, list[Assignment]]:
    order = current_domain.repository_for(Order).get_by_number(order_number)
    assignments = current_domain.repository_for(Assignment).for_order(order_number)
    return order, assignments


def get_order(order_number: str) -> dict:
    return order_snapshot(*load_order(order_number))


def list_orders(order_type: str = "all") -> list[dict]:
    orders = current_domain.repository_for(Order).find_by_type(order_type)
    assignment_repo = current_domain.repository_for(Assignment)
    return [order_snapshot(order, assignment_repo.for_order(order.order_number)) for order in orders]


def team_orders(category: str, order_type: str = "all") -> list[dict]:
    """Orders with work for ``category``, trimmed to that category's items and assignments."""
    if category not in CATEGORIES:
        raise InvalidRequest({"category": [f"Unknown category '{category}'"]})

    in_category = current_domain.repository_for(Assignment).in_category(category)
    by_order: dict[str, list[Assignment]] = {}
    for assignment in in_category:
        by_order.setdefault(assignment.order_number, []).append(assignment)

    views = []
    for order in current_domain.repository_for(Order).find_by_type(order_type):
        assignments = by_order.get(order.order_number)
        if not assignments:
            continue
        view = order_snapshot(order, assignments, categories=(category,))
        view["items"] = [i for i in view["items"] if i["team_assignments"][category]]
        views.append(view)
    return views
