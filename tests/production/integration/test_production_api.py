"""Integration tests for the order and team endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers

from production.api import order_router, team_router
from production.domain import production


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(team_router)
    register_exception_handlers(app)
    return TestClient(app)


def _payload(order_number="PO-API-1", glass_qty=100, caps_qty=None):
    team_assignments = {"glass": [{"name": "Amber Jar 50ml", "material": "Amber", "quantity": glass_qty, "rate_per_1000": 6000}]}
    if caps_qty:
        team_assignments["caps"] = [{"name": "Wadded Lid", "quantity": caps_qty}]
    return {
        "order_number": order_number,
        "dispatcher_name": "Meera",
        "customer_name": "Lumen Cosmetics",
        "items": [{"name": "Night Cream Jar", "team_assignments": team_assignments}],
    }


def _create(client, **kwargs):
    response = client.post("/orders", json=_payload(**kwargs))
    assert response.status_code == 201
    return response.json()


def _update(assignment_id, quantity, new_total, new_status="Pending"):
    return {
        "assignment_id": assignment_id,
        "entry": {"quantity": quantity, "author": "glass-team"},
        "new_total_completed": new_total,
        "new_status": new_status,
    }


def _glass(order):
    item = order["items"][0]
    return item["item_id"], item["team_assignments"]["glass"][0]["assignment_id"]


class TestCreateOrderAPI:
    def test_create_returns_snapshot(self, client):
        order = _create(client)
        assert order["order_number"] == "PO-API-1"
        assert order["order_status"] == "Pending"
        assert order["cost_estimate"]["items_cost"] == 600.0

    def test_duplicate_order_number_is_400(self, client):
        _create(client)
        response = client.post("/orders", json=_payload())
        assert response.status_code == 400

    def test_missing_field_is_422(self, client):
        payload = _payload()
        del payload["customer_name"]
        assert client.post("/orders", json=payload).status_code == 422

    def test_unknown_category_is_400(self, client):
        payload = _payload()
        payload["items"][0]["team_assignments"]["labels"] = [{"name": "Front Label", "quantity": 10}]
        assert client.post("/orders", json=payload).status_code == 400


class TestReadAPI:
    def test_get_order(self, client):
        _create(client)
        response = client.get("/orders/PO-API-1")
        assert response.status_code == 200
        assert response.json()["items"][0]["name"] == "Night Cream Jar"

    def test_get_unknown_order_is_404(self, client):
        assert client.get("/orders/PO-404").status_code == 404

    def test_list_orders_by_type(self, client):
        _create(client)
        assert [o["order_number"] for o in client.get("/orders", params={"order_type": "pending"}).json()] == [
            "PO-API-1"
        ]
        assert client.get("/orders", params={"order_type": "completed"}).json() == []

    def test_list_orders_unknown_type_is_400(self, client):
        assert client.get("/orders", params={"order_type": "archived"}).status_code == 400

    def test_team_orders(self, client):
        _create(client, caps_qty=100)
        _create(client, order_number="PO-API-2")

        response = client.get("/teams/caps/orders")
        assert response.status_code == 200
        assert [o["order_number"] for o in response.json()] == ["PO-API-1"]

    def test_team_orders_unknown_category_is_400(self, client):
        assert client.get("/teams/labels/orders").status_code == 400


class TestProgressAPI:
    def test_record_progress(self, client):
        item_id, aid = _glass(_create(client))

        response = client.patch(
            "/orders/PO-API-1/progress",
            json={"item_id": item_id, "updates": [_update(aid, 40, 40)]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["updated_assignments"] == [{"assignment_id": aid, "new_status": "Pending", "total_completed": 40}]
        assert body["order"]["progress"]["percentage"] == 40

    def test_over_capacity_is_400(self, client):
        item_id, aid = _glass(_create(client))
        response = client.patch(
            "/orders/PO-API-1/progress",
            json={"item_id": item_id, "updates": [_update(aid, 101, 101, "Completed")]},
        )
        assert response.status_code == 400

    def test_stale_expectation_is_409(self, client):
        item_id, aid = _glass(_create(client))
        response = client.patch(
            "/orders/PO-API-1/progress",
            json={"item_id": item_id, "updates": [_update(aid, 10, 50)]},
        )
        assert response.status_code == 409
        assert "_conflict" in response.json()["detail"]

    def test_unknown_assignment_is_404(self, client):
        item_id, _ = _glass(_create(client))
        response = client.patch(
            "/orders/PO-API-1/progress",
            json={"item_id": item_id, "updates": [_update("missing", 10, 10)]},
        )
        assert response.status_code == 404

    def test_store_outage_is_503(self, client, monkeypatch):
        item_id, aid = _glass(_create(client))

        def outage(*args, **kwargs):
            raise ConnectionError("database is gone")

        monkeypatch.setattr(production, "process", outage)
        response = client.patch(
            "/orders/PO-API-1/progress",
            json={"item_id": item_id, "updates": [_update(aid, 10, 10)]},
        )
        assert response.status_code == 503

    def test_empty_request_is_400(self, client):
        _create(client)
        assert client.patch("/orders/PO-API-1/progress", json={}).status_code == 400


class TestQcAPI:
    def test_full_lifecycle(self, client):
        item_id, aid = _glass(_create(client))
        client.patch(
            "/orders/PO-API-1/progress",
            json={"item_id": item_id, "updates": [_update(aid, 100, 100, "Completed")]},
        )

        response = client.put("/orders/PO-API-1/qc", json={"verdict": "Completed", "recorded_by": "qc-lead"})

        assert response.status_code == 200
        assert response.json()["order_status"] == "Completed"

    def test_unknown_verdict_is_400(self, client):
        _create(client)
        assert client.put("/orders/PO-API-1/qc", json={"verdict": "Maybe"}).status_code == 400


class TestEditAndDeleteAPI:
    def test_edit_order(self, client):
        _create(client)
        payload = _payload(glass_qty=200)
        del payload["order_number"]

        response = client.put("/orders/PO-API-1", json=payload)

        assert response.status_code == 200
        assert response.json()["items"][0]["team_assignments"]["glass"][0]["quantity"] == 200

    def test_delete_order(self, client):
        _create(client, caps_qty=10)

        response = client.delete("/orders/PO-API-1")

        assert response.status_code == 200
        assert response.json() == {"order_number": "PO-API-1", "deleted_assignments": 2}
        assert client.get("/orders/PO-API-1").status_code == 404

    def test_delete_unknown_order_is_404(self, client):
        assert client.delete("/orders/PO-404").status_code == 404

    def test_concurrent_edit_is_409(self, client, monkeypatch):
        _create(client)
        payload = _payload(glass_qty=200)
        del payload["order_number"]

        def clash(*args, **kwargs):
            raise ExpectedVersionError("Wrong expected version: 1 (Stream: order-PO-API-1, Stream Version: 2)")

        monkeypatch.setattr(production, "process", clash)
        assert client.put("/orders/PO-API-1", json=payload).status_code == 409

    def test_delete_during_outage_is_503(self, client, monkeypatch):
        _create(client)

        def outage(*args, **kwargs):
            raise ConnectionError("database is gone")

        monkeypatch.setattr(production, "process", outage)
        assert client.delete("/orders/PO-API-1").status_code == 503
