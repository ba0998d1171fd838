"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the order validation rules
(known categories, positive quantities, non-negative rates) and match the
field names expected by the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

_GLASS = ["Flint Bottle 30ml", "Amber Jar 50ml", "Frosted Vial 10ml", "Flint Bottle 100ml"]
_CAPS = ["Dropper Cap", "Wadded Lid", "Flip-top Cap", "Screw Cap"]
_BOXES = ["Mono Carton", "Shipper Box", "Gift Box"]
_PUMPS = ["Lotion Pump", "Mist Sprayer", "Foam Pump"]


def unique_order_number() -> str:
    """Generate order numbers like 'PO-LT-a1b2c3d4'."""
    return f"PO-LT-{uuid.uuid4().hex[:8]}"


def assignment_data(category: str) -> dict:
    """One assignment of ``category`` with a random spec and quantity."""
    names = {"glass": _GLASS, "caps": _CAPS, "boxes": _BOXES, "pumps": _PUMPS}[category]
    data = {
        "name": random.choice(names),
        "quantity": random.choice([500, 1000, 2500, 5000]),
        "rate_per_1000": round(random.uniform(800, 9000), 2),
    }
    if category == "glass":
        data["material"] = random.choice(["Flint", "Amber", "Frosted"])
        data["neck_size"] = random.choice(["18mm", "20mm", "24mm"])
    elif category == "caps":
        data["process"] = random.choice(["Metallised", "Plain", "UV Coated"])
    return data


def item_data(categories: list[str] | None = None) -> dict:
    categories = categories or ["glass"] + random.sample(["caps", "boxes", "pumps"], k=random.randint(0, 2))
    return {
        "name": f"{fake.word().capitalize()} {random.choice(['Serum', 'Toner', 'Cream', 'Oil'])}",
        "team_assignments": {category: [assignment_data(category)] for category in categories},
    }


def order_data(order_number: str | None = None, num_items: int = 2) -> dict:
    """Generate CreateOrderRequest payload matching schema field names."""
    return {
        "order_number": order_number or unique_order_number(),
        "dispatcher_name": fake.first_name()[:100],
        "customer_name": fake.company()[:100],
        "items": [item_data() for _ in range(num_items)],
    }


def progress_update(assignment: dict, quantity: int, author: str | None = None) -> dict:
    """One update entry for an assignment snapshot, with the totals it should produce."""
    new_total = assignment["tracking"]["total_completed_qty"] + quantity
    return {
        "assignment_id": assignment["assignment_id"],
        "entry": {"quantity": quantity, "author": author or f"{assignment['category']}-team"},
        "new_total_completed": new_total,
        "new_status": "Completed" if new_total == assignment["quantity"] else "Pending",
    }
