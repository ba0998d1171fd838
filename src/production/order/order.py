"""Order aggregate (CQRS) — a manufacturing order and its items.

The Order owns its Items and the statuses derived for them. The work itself
lives in Assignment aggregates that reference the order by number and the
item by id; the Order never holds assignments, it only folds their state in
through the rollup functions.

Status flow:
    Pending → (InProgress, administrative) → Completed
    Completed requires every applicable item category Completed AND a
    Completed QC verdict. Only an administrative edit can reopen it.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String, ValueObject

from production import rollup
from production.domain import production
from production.errors import InvalidRequest, NotFound
from production.order.events import (
    FulfillmentUpdated,
    OrderCompleted,
    OrderCreated,
    OrderDeleted,
    OrderEdited,
    QcVerdictRecorded,
    TeamStatusChanged,
)
from production.shared.enums import CATEGORIES, OrderStatus, QcStatus, TeamStatus

# Statuses a dispatcher may set by hand
_ADMINISTRATIVE_STATUSES = {OrderStatus.PENDING.value, OrderStatus.IN_PROGRESS.value}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@production.value_object(part_of="Order")
class CostEstimate:
    """Estimated cost breakdown. Auxiliary data, never part of the rollup."""

    items_cost = Float(default=0.0)
    shipping_and_handling = Float(default=0.0)
    taxes = Float(default=0.0)
    additional_fees = Float(default=0.0)
    total = Float(default=0.0)


@production.value_object(part_of="Order")
class CostConfig:
    """Cost settings the estimate was computed with. Reused when an edit sends none."""

    shipping_cost = Float(default=0.0)
    handling_cost = Float(default=0.0)
    tax_rate = Float(default=0.0)
    insurance = Float(default=0.0)
    expedited_shipping = Float(default=0.0)
    special_handling = Float(default=0.0)

    def to_dict(self) -> dict:
        return {
            "shipping_cost": self.shipping_cost,
            "handling_cost": self.handling_cost,
            "tax_rate": self.tax_rate,
            "insurance": self.insurance,
            "expedited_shipping": self.expedited_shipping,
            "special_handling": self.special_handling,
        }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@production.entity(part_of="Order")
class Item:
    """A line of the order. ``None`` category status means not applicable."""

    name = String(required=True, max_length=255)
    position = Integer(default=0)
    glass_status = String(choices=TeamStatus)
    caps_status = String(choices=TeamStatus)
    boxes_status = String(choices=TeamStatus)
    pumps_status = String(choices=TeamStatus)

    def status_of(self, category: str) -> str | None:
        return getattr(self, f"{category}_status")

    @property
    def team_status(self) -> dict:
        return {category: self.status_of(category) for category in CATEGORIES}


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@production.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    dispatcher_name = String(required=True, max_length=100)
    customer_name = String(required=True, max_length=100)
    order_status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    qc_status = String(choices=QcStatus)
    items = HasMany(Item)
    cost_estimate = ValueObject(CostEstimate)
    cost_config = ValueObject(CostConfig)
    created_at = DateTime()
    updated_at = DateTime()
    completed_at = DateTime()

    @invariant.post
    def completion_requires_qc_sign_off(self):
        if self.order_status == OrderStatus.COMPLETED.value and self.qc_status != QcStatus.COMPLETED.value:
            raise ValidationError({"order_status": ["An order cannot be Completed before QC is Completed"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number: str,
        dispatcher_name: str,
        customer_name: str,
        items_data: list[dict],
        cost_estimate: dict | None = None,
        order_status: str | None = None,
        cost_config: dict | None = None,
    ):
        """Create an order with its items.

        ``items_data`` is a list of ``{"name": ..., "categories": [...]}``
        where ``categories`` names the categories that carry assignments.
        """
        order_status = order_status or OrderStatus.PENDING.value
        if order_status not in _ADMINISTRATIVE_STATUSES:
            raise InvalidRequest({"order_status": [f"Order cannot be created with status '{order_status}'"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            dispatcher_name=dispatcher_name,
            customer_name=customer_name,
            order_status=order_status,
            cost_estimate=CostEstimate(**cost_estimate) if cost_estimate else None,
            cost_config=CostConfig(**cost_config) if cost_config else None,
            created_at=now,
            updated_at=now,
        )
        order._add_items(items_data)
        return order

    def _add_items(self, items_data: list[dict]) -> list[Item]:
        added = []
        for position, item_data in enumerate(items_data):
            categories = set(item_data.get("categories") or [])
            statuses = {
                f"{category}_status": TeamStatus.PENDING.value for category in CATEGORIES if category in categories
            }
            item = Item(name=item_data["name"], position=position, **statuses)
            self.add_items(item)
            added.append(item)
        return added

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def ordered_items(self) -> list[Item]:
        return sorted(self.items or [], key=lambda i: i.position or 0)

    def find_item(self, item_id: str) -> Item:
        item = next((i for i in (self.items or []) if str(i.id) == str(item_id)), None)
        if item is None:
            raise NotFound("Item", item_id, detail=f"in order {self.order_number}")
        return item

    def cost_settings(self) -> dict:
        """Stored cost settings; empty for orders created without any."""
        return self.cost_config.to_dict() if self.cost_config else {}

    @property
    def is_completed(self) -> bool:
        return self.order_status == OrderStatus.COMPLETED.value

    # -------------------------------------------------------------------
    # Rollup
    # -------------------------------------------------------------------
    def refresh_item_statuses(self, item: Item, item_assignments: list) -> list[str]:
        """Recompute every category status of ``item``; return the categories that changed."""
        by_category = rollup.group_by_category(item_assignments)
        changed = []
        now = datetime.now(UTC)
        for category in CATEGORIES:
            previous = item.status_of(category)
            new = rollup.category_status(by_category.get(category, []), previous=previous or TeamStatus.PENDING.value)
            if new == previous:
                continue
            setattr(item, f"{category}_status", new)
            changed.append(category)
            self.raise_(
                TeamStatusChanged(
                    order_number=self.order_number,
                    item_id=str(item.id),
                    category=category,
                    previous_status=previous,
                    new_status=new,
                    changed_at=now,
                )
            )
        if changed:
            self.updated_at = now
        return changed

    def record_qc_verdict(self, verdict: str, recorded_by: str | None = None) -> bool:
        """Set the QC verdict. Returns False when nothing changed."""
        if verdict not in {s.value for s in QcStatus}:
            raise InvalidRequest({"qc_status": [f"Unknown QC verdict '{verdict}' for order {self.order_number}"]})
        if self.is_completed and verdict != QcStatus.COMPLETED.value:
            raise InvalidRequest(
                {"qc_status": [f"Order {self.order_number} is Completed; QC verdict cannot move back to {verdict}"]}
            )
        if verdict == self.qc_status:
            return False

        now = datetime.now(UTC)
        previous = self.qc_status
        self.qc_status = verdict
        self.updated_at = now
        self.raise_(
            QcVerdictRecorded(
                order_number=self.order_number,
                previous_verdict=previous,
                verdict=verdict,
                recorded_by=recorded_by,
                recorded_at=now,
            )
        )
        return True

    def settle(self, assignments: list, reopen: bool = False) -> str:
        """Fold all of the order's assignments and the QC verdict into ``order_status``."""
        new_status = rollup.order_status(assignments, self.qc_status, previous=self.order_status, reopen=reopen)
        if new_status == self.order_status:
            return new_status

        now = datetime.now(UTC)
        reached_completion = new_status == OrderStatus.COMPLETED.value
        self.order_status = new_status
        self.completed_at = now if reached_completion else None
        self.updated_at = now
        if reached_completion:
            self.raise_(
                OrderCompleted(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    customer_name=self.customer_name,
                    completed_at=now,
                )
            )
        return new_status

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def announce_creation(self, assignment_count: int, total_units: int) -> None:
        self.raise_(
            OrderCreated(
                order_id=str(self.id),
                order_number=self.order_number,
                dispatcher_name=self.dispatcher_name,
                customer_name=self.customer_name,
                order_status=self.order_status,
                item_count=len(self.items or []),
                assignment_count=assignment_count,
                total_units=total_units,
                created_at=self.created_at,
            )
        )

    def revise(
        self,
        items_data: list[dict],
        dispatcher_name: str | None = None,
        customer_name: str | None = None,
        order_status: str | None = None,
        cost_estimate: dict | None = None,
        cost_config: dict | None = None,
    ) -> list[Item]:
        """Replace the order's items. Returns the new items in order."""
        if order_status is not None and order_status not in _ADMINISTRATIVE_STATUSES:
            raise InvalidRequest({"order_status": [f"Order status cannot be set to '{order_status}' by an edit"]})

        for item in list(self.items or []):
            self.remove_items(item)
        new_items = self._add_items(items_data)

        if dispatcher_name:
            self.dispatcher_name = dispatcher_name
        if customer_name:
            self.customer_name = customer_name
        if order_status is not None:
            self.order_status = order_status
            self.completed_at = None
        if cost_estimate is not None:
            self.cost_estimate = CostEstimate(**cost_estimate)
        if cost_config is not None:
            self.cost_config = CostConfig(**cost_config)
        self.updated_at = datetime.now(UTC)
        return new_items

    def announce_edit(self, progress: rollup.Progress, dropped_keys: list[str]) -> None:
        self.raise_(
            OrderEdited(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_name=self.customer_name,
                order_status=self.order_status,
                qc_status=self.qc_status,
                item_count=len(self.items or []),
                completed_units=progress.completed_units,
                total_units=progress.total_units,
                dropped_keys=json.dumps(dropped_keys),
                edited_at=self.updated_at,
            )
        )

    def announce_update(
        self,
        item_id: str | None,
        categories: list[str],
        updated_assignments: list[dict],
        progress: rollup.Progress,
        snapshot: dict,
    ) -> None:
        self.raise_(
            FulfillmentUpdated(
                order_number=self.order_number,
                item_id=str(item_id) if item_id else None,
                categories=json.dumps(categories),
                updated_assignments=json.dumps(updated_assignments),
                order_status=self.order_status,
                qc_status=self.qc_status,
                completed_units=progress.completed_units,
                total_units=progress.total_units,
                percentage=progress.percentage,
                snapshot=json.dumps(snapshot, default=str),
                updated_at=datetime.now(UTC),
            )
        )

    def mark_deleted(self, assignment_count: int) -> None:
        self.raise_(
            OrderDeleted(
                order_id=str(self.id),
                order_number=self.order_number,
                assignment_count=assignment_count,
                deleted_at=datetime.now(UTC),
            )
        )
