import json

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from production.broadcast import reset_hub


@pytest.fixture(scope="session")
def production_bed():
    from production.domain import production
    from production.utils.db import drop_db, setup_db

    bed = DomainFixture(production)
    bed.setup()
    setup_db(production)
    yield bed
    drop_db(production)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(production_bed):
    with production_bed.domain_context():
        yield

        # Cleanup infrastructure after every test
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()
        reset_hub()


def _order_items(glass_qty=100, caps_qty=None, item_name="Serum Bottle 30ml"):
    team_assignments = {
        "glass": [
            {
                "name": "Flint Bottle 30ml",
                "material": "Flint",
                "size": "30ml",
                "neck_size": "18mm",
                "quantity": glass_qty,
                "rate_per_1000": 4000.0,
            }
        ]
    }
    if caps_qty:
        team_assignments["caps"] = [
            {
                "name": "Dropper Cap",
                "material": "PP",
                "process": "Metallised",
                "quantity": caps_qty,
                "rate_per_1000": 1500.0,
            }
        ]
    return [{"name": item_name, "team_assignments": team_assignments}]


@pytest.fixture()
def order_items():
    """Build an items payload: one item with glass work and optionally caps."""
    return _order_items


@pytest.fixture()
def create_order():
    """Create an order through the command pipeline; returns its snapshot."""
    from production.order.creation import CreateOrder

    def _create(order_number="PO-1001", items=None, **overrides):
        fields = {
            "order_number": order_number,
            "dispatcher_name": "Meera",
            "customer_name": "Lumen Cosmetics",
            "items": json.dumps(items if items is not None else _order_items()),
        }
        fields.update(overrides)
        return current_domain.process(CreateOrder(**fields), asynchronous=False)

    return _create


@pytest.fixture()
def progress_update():
    """Build one entry of an update request."""

    def _update(assignment_id, quantity, new_total, new_status="Pending", author="glass-team", date=None):
        entry = {"quantity": quantity, "author": author}
        if date is not None:
            entry["date"] = date
        return {
            "assignment_id": assignment_id,
            "entry": entry,
            "new_total_completed": new_total,
            "new_status": new_status,
        }

    return _update

