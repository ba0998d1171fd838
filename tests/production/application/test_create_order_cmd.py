"""Application tests for order creation via domain.process()."""

import json

import pytest
from protean import current_domain

from production.assignment.assignment import Assignment
from production.errors import InvalidRequest
from production.order.creation import CreateOrder
from production.order.order import Order
from production.shared.enums import OrderStatus, TeamStatus


class TestCreateOrder:
    def test_order_items_and_assignments_persisted(self, create_order, order_items):
        snapshot = create_order(items=order_items(glass_qty=5000, caps_qty=5000))

        order = current_domain.repository_for(Order).get_by_number("PO-1001")
        assert order.order_status == OrderStatus.PENDING.value
        assert len(order.items) == 1
        assert order.items[0].glass_status == TeamStatus.PENDING.value
        assert order.items[0].boxes_status is None

        assignments = current_domain.repository_for(Assignment).for_order("PO-1001")
        assert sorted(a.category for a in assignments) == ["caps", "glass"]
        assert all(str(a.item_id) == snapshot["items"][0]["item_id"] for a in assignments)

    def test_snapshot_shape(self, create_order):
        snapshot = create_order()
        item = snapshot["items"][0]
        glass = item["team_assignments"]["glass"][0]

        assert snapshot["order_number"] == "PO-1001"
        assert item["team_status"]["glass"] == "Pending"
        assert item["team_assignments"]["caps"] == []
        assert glass["team"] == "Glass"
        assert glass["spec"]["material"] == "Flint"
        assert glass["tracking"] == {"total_completed_qty": 0, "remaining": 100, "completed_entries": []}
        assert snapshot["progress"] == {"completed_units": 0, "total_units": 100, "percentage": 0}

    def test_cost_estimate_stored(self, create_order, order_items):
        create_order(items=order_items(glass_qty=5000))
        order = current_domain.repository_for(Order).get_by_number("PO-1001")
        assert order.cost_estimate.items_cost == 20000.0
        assert order.cost_estimate.total == 24400.0

    def test_cost_config_override(self, create_order, order_items):
        snapshot = create_order(items=order_items(glass_qty=1000), cost_config=json.dumps({"tax_rate": 0.0}))
        assert snapshot["cost_estimate"]["taxes"] == 0.0

    def test_named_team_kept(self, create_order):
        items = [{"name": "Jar", "team_assignments": {"glass": [{"name": "Jar 50g", "quantity": 10, "team": "Line 3"}]}}]
        snapshot = create_order(items=items)
        assert snapshot["items"][0]["team_assignments"]["glass"][0]["team"] == "Line 3"

    def test_order_without_items(self, create_order):
        snapshot = create_order(items=[])
        assert snapshot["items"] == []

    def test_duplicate_order_number_rejected(self, create_order):
        create_order()
        with pytest.raises(InvalidRequest) as exc:
            create_order()
        assert "already exists" in str(exc.value)

    @pytest.mark.parametrize(
        "items",
        [
            [{"team_assignments": {}}],
            [{"name": "Jar", "team_assignments": {"labels": [{"name": "x", "quantity": 1}]}}],
            [{"name": "Jar", "team_assignments": {"glass": [{"name": "Jar 50g", "quantity": 0}]}}],
            [{"name": "Jar", "team_assignments": {"glass": [{"quantity": 10}]}}],
        ],
    )
    def test_invalid_items_rejected_without_writes(self, create_order, items):
        with pytest.raises(InvalidRequest):
            create_order(items=items)
        assert current_domain.repository_for(Order).find_by_number("PO-1001") is None
        assert current_domain.repository_for(Assignment).for_order("PO-1001") == []

    def test_cannot_create_completed(self):
        with pytest.raises(InvalidRequest):
            current_domain.process(
                CreateOrder(
                    order_number="PO-2",
                    dispatcher_name="Meera",
                    customer_name="Lumen",
                    order_status="Completed",
                    items="[]",
                ),
                asynchronous=False,
            )

    @pytest.mark.parametrize(
        "field, fields",
        [
            ("items", {"items": "[{not json"}),
            ("cost_config", {"items": "[]", "cost_config": "{tax_rate: 0"}),
        ],
    )
    def test_malformed_json_rejected(self, field, fields):
        with pytest.raises(InvalidRequest) as exc:
            current_domain.process(
                CreateOrder(order_number="PO-3", dispatcher_name="Meera", customer_name="Lumen", **fields),
                asynchronous=False,
            )
        assert field in exc.value.messages
        assert current_domain.repository_for(Order).find_by_number("PO-3") is None
