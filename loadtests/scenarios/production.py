"""Production tracking load test scenarios.

Stateful SequentialTaskSet journeys covering the full order lifecycle
(create, report progress team by team, QC sign-off), administrative
edits of in-flight orders, and the read paths used by team and
dispatcher dashboards.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import order_data, progress_update
from loadtests.helpers.response import extract_error_detail, is_retryable
from loadtests.helpers.state import ProductionOrderState

_CATEGORIES = ["glass", "caps", "boxes", "pumps"]


def _create_order(taskset, num_items=2):
    payload = order_data(num_items=num_items)
    with taskset.client.post("/orders", json=payload, catch_response=True, name="POST /orders") as resp:
        if resp.status_code == 201:
            taskset.state.order_number = payload["order_number"]
            taskset.state.snapshot = resp.json()
        else:
            resp.failure(f"Create order failed: {resp.status_code} — {extract_error_detail(resp)}")
            taskset.interrupt()


def _report_batch(taskset, fraction):
    """Report ``fraction`` of the remaining units of every open assignment of one item."""
    open_assignments = taskset.state.open_assignments()
    if not open_assignments:
        return
    item_id = open_assignments[0][0]
    updates = []
    for candidate_item, assignment in open_assignments:
        if candidate_item != item_id:
            continue
        remaining = assignment["tracking"]["remaining"]
        quantity = remaining if fraction >= 1 else max(1, int(remaining * fraction))
        updates.append(progress_update(assignment, quantity))

    with taskset.client.patch(
        f"/orders/{taskset.state.order_number}/progress",
        json={"item_id": item_id, "updates": updates},
        catch_response=True,
        name="PATCH /orders/{number}/progress",
    ) as resp:
        if resp.status_code == 200:
            taskset.state.snapshot = resp.json()["order"]
        elif is_retryable(resp):
            # Expected under contention: refresh and let the next task retry
            taskset.state.conflicts += 1
            resp.success()
            _refresh(taskset)
        else:
            resp.failure(f"Progress update failed: {resp.status_code} — {extract_error_detail(resp)}")
            taskset.interrupt()


def _refresh(taskset):
    with taskset.client.get(
        f"/orders/{taskset.state.order_number}",
        catch_response=True,
        name="GET /orders/{number}",
    ) as resp:
        if resp.status_code == 200:
            taskset.state.snapshot = resp.json()
        else:
            resp.failure(f"Get order failed: {resp.status_code} — {extract_error_detail(resp)}")


class OrderLifecycleJourney(SequentialTaskSet):
    """Create -> Partial Progress -> Finish Every Item -> QC InProgress -> QC Completed.

    The happy path: every team reports until its assignments are done, then
    QC signs off and the order reaches Completed.
    """

    def on_start(self):
        self.state = ProductionOrderState()

    @task
    def create_order(self):
        _create_order(self)

    @task
    def report_partial(self):
        _report_batch(self, 0.4)

    @task
    def finish_production(self):
        for _ in range(len(self.state.snapshot["items"]) * 2):
            if not self.state.open_assignments():
                break
            _report_batch(self, 1)

    @task
    def qc_in_progress(self):
        with self.client.put(
            f"/orders/{self.state.order_number}/qc",
            json={"verdict": "InProgress", "recorded_by": "qc-loadtest"},
            catch_response=True,
            name="PUT /orders/{number}/qc",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"QC verdict failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def qc_completed(self):
        with self.client.put(
            f"/orders/{self.state.order_number}/qc",
            json={"verdict": "Completed", "recorded_by": "qc-loadtest"},
            catch_response=True,
            name="PUT /orders/{number}/qc",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"QC verdict failed: {resp.status_code} — {extract_error_detail(resp)}")
            elif self.state.open_assignments() == [] and resp.json()["order_status"] != "Completed":
                resp.failure("Order not Completed after production and QC sign-off")

    @task
    def customer_view(self):
        self.client.get(
            f"/orders/{self.state.order_number}/progress-view",
            name="GET /orders/{number}/progress-view",
        )

    @task
    def done(self):
        self.interrupt()


class OrderEditJourney(SequentialTaskSet):
    """Create -> Partial Progress -> Edit (add an item) -> Delete.

    Exercises ledger carry-over on edit and cascading deletion.
    """

    def on_start(self):
        self.state = ProductionOrderState()

    @task
    def create_order(self):
        _create_order(self, num_items=1)

    @task
    def report_partial(self):
        _report_batch(self, 0.5)

    @task
    def edit_order(self):
        items = [
            {
                "name": item["name"],
                "team_assignments": {
                    category: [{"quantity": a["quantity"], **a["spec"]} for a in assignments]
                    for category, assignments in item["team_assignments"].items()
                    if assignments
                },
            }
            for item in self.state.snapshot["items"]
        ]
        items.append(order_data(num_items=1)["items"][0])
        with self.client.put(
            f"/orders/{self.state.order_number}",
            json={"items": items},
            catch_response=True,
            name="PUT /orders/{number}",
        ) as resp:
            if resp.status_code == 200:
                self.state.snapshot = resp.json()
            else:
                resp.failure(f"Edit order failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def delete_order(self):
        with self.client.delete(
            f"/orders/{self.state.order_number}",
            catch_response=True,
            name="DELETE /orders/{number}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Delete order failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ProductionUser(HttpUser):
    """Locust user simulating dispatchers, teams and QC.

    Weighted distribution:
    - 70% Full lifecycle (create → Completed)
    - 30% Edit and delete journey
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        OrderLifecycleJourney: 7,
        OrderEditJourney: 3,
    }


class DashboardUser(HttpUser):
    """Read-heavy user polling the dispatcher and team dashboards."""

    wait_time = between(1.0, 3.0)

    @task(3)
    def team_orders(self):
        self.client.get(
            f"/teams/{random.choice(_CATEGORIES)}/orders",
            params={"order_type": "pending"},
            name="GET /teams/{category}/orders",
        )

    @task(2)
    def pending_orders(self):
        self.client.get("/orders", params={"order_type": "pending"}, name="GET /orders")

    @task(1)
    def completed_orders(self):
        self.client.get("/orders", params={"order_type": "completed"}, name="GET /orders")
