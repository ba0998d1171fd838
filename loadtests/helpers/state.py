"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State keeps the latest order snapshot returned by the API so follow-up
updates can state the totals they expect.
"""

from dataclasses import dataclass


@dataclass
class ProductionOrderState:
    """Tracks state for a single simulated order lifecycle."""

    order_number: str | None = None
    snapshot: dict | None = None
    conflicts: int = 0

    def assignments(self):
        """Yield ``(item_id, assignment)`` for every assignment in the snapshot."""
        for item in (self.snapshot or {}).get("items", []):
            for assignments in item["team_assignments"].values():
                for assignment in assignments:
                    yield item["item_id"], assignment

    def open_assignments(self):
        return [(item_id, a) for item_id, a in self.assignments() if a["tracking"]["remaining"] > 0]
