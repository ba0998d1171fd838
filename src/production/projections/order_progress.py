"""Order progress — the five-step delivery view shown to customers.

Views are rebuilt from the event when missing, so a lost row never fails
the update that triggered the projection.
"""

import json
from datetime import datetime

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Integer, String
from protean.utils.globals import current_domain

from production import rollup
from production.domain import production
from production.order.events import FulfillmentUpdated, OrderCreated, OrderDeleted, OrderEdited
from production.order.order import Order


@production.projection
class OrderProgressView:
    order_number = String(identifier=True, required=True, max_length=50)
    customer_name = String(required=True)
    current_step = Integer(default=1)
    step_title = String()
    total_steps = Integer(default=len(rollup.STEPS))
    percentage = Integer(default=0)
    completed_units = Integer(default=0)
    total_units = Integer(default=0)
    order_status = String()
    qc_status = String()
    created_at = DateTime()
    updated_at = DateTime()


def _apply(view, order_status, qc_status, units: rollup.Progress, at):
    step, title = rollup.customer_step(order_status, qc_status, units)
    view.current_step = step
    view.step_title = title
    view.percentage = units.percentage
    view.completed_units = units.completed_units
    view.total_units = units.total_units
    view.order_status = order_status
    view.qc_status = qc_status
    view.updated_at = at


def _get_or_create(order_number, customer_name, created_at=None):
    repo = current_domain.repository_for(OrderProgressView)
    try:
        return repo, repo.get(order_number)
    except ObjectNotFoundError:
        return repo, OrderProgressView(order_number=order_number, customer_name=customer_name, created_at=created_at)


@production.projector(projector_for=OrderProgressView, aggregates=[Order])
class OrderProgressProjector:
    @on(OrderCreated)
    def on_order_created(self, event):
        view = OrderProgressView(
            order_number=event.order_number,
            customer_name=event.customer_name,
            created_at=event.created_at,
        )
        units = rollup.Progress(0, event.total_units, 100 if event.total_units == 0 else 0)
        _apply(view, event.order_status, None, units, event.created_at)
        current_domain.repository_for(OrderProgressView).add(view)

    @on(OrderEdited)
    def on_order_edited(self, event):
        repo, view = _get_or_create(event.order_number, event.customer_name)
        view.customer_name = event.customer_name
        total = event.total_units
        units = rollup.Progress(
            event.completed_units,
            total,
            100 if total == 0 else (event.completed_units * 100) // total,
        )
        _apply(view, event.order_status, event.qc_status, units, event.edited_at)
        repo.add(view)

    @on(FulfillmentUpdated)
    def on_fulfillment_updated(self, event):
        snapshot = json.loads(event.snapshot) if event.snapshot else {}
        created_at = snapshot.get("created_at")
        repo, view = _get_or_create(
            event.order_number,
            snapshot.get("customer_name") or "",
            datetime.fromisoformat(created_at) if created_at else None,
        )
        units = rollup.Progress(event.completed_units, event.total_units, event.percentage)
        _apply(view, event.order_status, event.qc_status, units, event.updated_at)
        repo.add(view)

    @on(OrderDeleted)
    def on_order_deleted(self, event):
        repo = current_domain.repository_for(OrderProgressView)
        try:
            repo._dao.delete(repo.get(event.order_number))
        except ObjectNotFoundError:
            pass
