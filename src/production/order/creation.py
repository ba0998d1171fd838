"""Order creation — command and handler.

An order is created together with its items and every assignment under
them in a single unit of work.
"""

from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from production.assignment.assignment import SPEC_FIELDS, Assignment
from production.domain import production
from production.errors import InvalidRequest
from production.order.costs import estimate_costs, merge_config
from production.order.order import Order
from production.order.queries import order_snapshot
from production.shared.enums import CATEGORIES
from production.shared.payloads import load_json


@production.command(part_of="Order")
class CreateOrder:
    """Place a production order with items and per-category assignments."""

    order_number = String(required=True, max_length=50)
    dispatcher_name = String(required=True, max_length=100)
    customer_name = String(required=True, max_length=100)
    order_status = String(max_length=20)
    items = Text(required=True)  # JSON list of {name, team_assignments: {category: [assignment]}}
    cost_config = Text()  # JSON dict overriding the default cost settings


def parse_items(raw) -> list[dict]:
    """Validate an items payload.

    Returns ``[{"name": ..., "team_assignments": {category: [assignment, ...]}}]``
    where each assignment is ``{"spec": {...}, "quantity": int, "team": str | None}``.
    """
    items = load_json(raw, "items")
    if not isinstance(items, list):
        raise InvalidRequest({"items": ["items must be a list"]})

    parsed = []
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item.get("name"):
            raise InvalidRequest({"items": [f"items[{index}]: name is required"]})
        team_assignments = item.get("team_assignments") or {}
        if not isinstance(team_assignments, dict):
            raise InvalidRequest({"items": [f"items[{index}]: team_assignments must be a mapping"]})

        per_category = {}
        for category, assignments in team_assignments.items():
            if category not in CATEGORIES:
                raise InvalidRequest({"items": [f"items[{index}]: unknown category '{category}'"]})
            if not assignments:
                continue
            per_category[category] = [
                _parse_assignment(a, f"items[{index}].team_assignments.{category}[{pos}]")
                for pos, a in enumerate(assignments)
            ]
        parsed.append({"name": item["name"], "team_assignments": per_category})
    return parsed


def _parse_assignment(data, where: str) -> dict:
    if not isinstance(data, dict):
        raise InvalidRequest({"items": [f"{where}: assignment must be an object"]})
    if not data.get("name"):
        raise InvalidRequest({"items": [f"{where}: name is required"]})
    quantity = data.get("quantity")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidRequest({"items": [f"{where}: quantity must be a positive integer"]})
    return {
        "spec": {k: v for k, v in data.items() if k in SPEC_FIELDS},
        "quantity": quantity,
        "team": data.get("team"),
    }


def cost_lines(parsed_items: list[dict]) -> list[dict]:
    return [
        {"quantity": a["quantity"], "rate_per_1000": a["spec"].get("rate_per_1000")}
        for item in parsed_items
        for assignments in item["team_assignments"].values()
        for a in assignments
    ]


def build_assignments(order: Order, new_items: list, parsed_items: list[dict]) -> list[tuple[Assignment, str]]:
    """Create the Assignment aggregates for freshly added items.

    Returns ``(assignment, item_name)`` pairs.
    """
    built = []
    for item, item_data in zip(new_items, parsed_items, strict=True):
        for category, assignments in item_data["team_assignments"].items():
            for position, data in enumerate(assignments):
                assignment = Assignment.create(
                    order_number=order.order_number,
                    item_id=str(item.id),
                    category=category,
                    spec_data=data["spec"],
                    quantity=data["quantity"],
                    team=data["team"],
                    position=position,
                )
                built.append((assignment, item.name))
    return built


def item_outline(parsed_items: list[dict]) -> list[dict]:
    return [{"name": i["name"], "categories": list(i["team_assignments"])} for i in parsed_items]


@production.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        repo = current_domain.repository_for(Order)
        if repo.find_by_number(command.order_number) is not None:
            raise InvalidRequest({"order_number": [f"Order {command.order_number} already exists"]})

        parsed_items = parse_items(command.items)
        cost_settings = merge_config(load_json(command.cost_config, "cost_config") if command.cost_config else None)

        order = Order.create(
            order_number=command.order_number,
            dispatcher_name=command.dispatcher_name,
            customer_name=command.customer_name,
            items_data=item_outline(parsed_items),
            cost_estimate=estimate_costs(cost_lines(parsed_items), cost_settings),
            order_status=command.order_status,
            cost_config=cost_settings,
        )
        assignments = [a for a, _ in build_assignments(order, order.ordered_items(), parsed_items)]
        order.announce_creation(
            assignment_count=len(assignments),
            total_units=sum(a.quantity for a in assignments),
        )

        repo.add(order)
        assignment_repo = current_domain.repository_for(Assignment)
        for assignment in assignments:
            assignment_repo.add(assignment)

        return order_snapshot(order, assignments)
