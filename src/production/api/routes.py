"""FastAPI routes for the Production domain."""

import json

from fastapi import APIRouter, HTTPException
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from production.api.schemas import (
    CreateOrderRequest,
    DeleteOrderResponse,
    EditOrderRequest,
    ItemRequest,
    ProgressRequest,
    ProgressResponse,
    ProgressViewResponse,
    QcVerdictRequest,
)
from production.errors import Conflict, NotFound, StoreFault
from production.order import queries
from production.order.creation import CreateOrder
from production.order.deletion import DeleteOrder
from production.order.editing import EditOrder
from production.projections.order_progress import OrderProgressView
from production.tracking import service


def _items_json(items: list[ItemRequest]) -> str:
    return json.dumps([item.model_dump(exclude_none=True) for item in items])


def _cost_config_json(cost_config) -> str | None:
    return json.dumps(cost_config.model_dump(exclude_none=True)) if cost_config else None


def _run(fn, *args, **kwargs):
    """Call a domain entry point, mapping retryable failures to HTTP errors."""
    try:
        return fn(*args, **kwargs)
    except Conflict as e:
        raise HTTPException(status_code=409, detail=e.messages) from e
    except StoreFault as e:
        raise HTTPException(status_code=503, detail=e.messages) from e


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
async def create_order(body: CreateOrderRequest) -> dict:
    """Create an order with its items and assignments."""
    command = CreateOrder(
        order_number=body.order_number,
        dispatcher_name=body.dispatcher_name,
        customer_name=body.customer_name,
        order_status=body.order_status,
        items=_items_json(body.items),
        cost_config=_cost_config_json(body.cost_config),
    )
    return _run(service.process, command, body.order_number)


@order_router.get("")
async def list_orders(order_type: str = "all") -> list[dict]:
    """List orders, newest first. ``order_type`` is all, pending or completed."""
    return queries.list_orders(order_type)


@order_router.get("/{order_number}")
async def get_order(order_number: str) -> dict:
    return queries.get_order(order_number)


@order_router.put("/{order_number}")
async def edit_order(order_number: str, body: EditOrderRequest) -> dict:
    """Replace the items and assignments of an order, carrying matching progress over."""
    command = EditOrder(
        order_number=order_number,
        dispatcher_name=body.dispatcher_name,
        customer_name=body.customer_name,
        order_status=body.order_status,
        items=_items_json(body.items),
        cost_config=_cost_config_json(body.cost_config),
    )
    return _run(service.process, command, order_number)


@order_router.delete("/{order_number}", response_model=DeleteOrderResponse)
async def delete_order(order_number: str) -> DeleteOrderResponse:
    result = _run(service.process, DeleteOrder(order_number=order_number), order_number)
    return DeleteOrderResponse(**result)


@order_router.patch("/{order_number}/progress", response_model=ProgressResponse)
async def record_progress(order_number: str, body: ProgressRequest) -> ProgressResponse:
    """Record production progress and/or a QC verdict in one transaction."""
    result = _run(
        service.apply_updates,
        order_number,
        item_id=body.item_id,
        updates=[u.model_dump(mode="json") for u in body.updates] if body.updates else None,
        qc_status=body.qc_status,
        submitted_by=body.submitted_by,
    )
    return ProgressResponse(**result)


@order_router.put("/{order_number}/qc")
async def set_qc_verdict(order_number: str, body: QcVerdictRequest) -> dict:
    return _run(service.set_verdict, order_number, body.verdict, recorded_by=body.recorded_by)


@order_router.get("/{order_number}/progress-view", response_model=ProgressViewResponse)
async def get_progress_view(order_number: str) -> ProgressViewResponse:
    """Customer-facing five-step progress of an order."""
    try:
        view = current_domain.repository_for(OrderProgressView).get(order_number)
    except ObjectNotFoundError:
        raise NotFound("Order", order_number) from None
    return ProgressViewResponse(
        order_number=view.order_number,
        customer_name=view.customer_name,
        current_step=view.current_step,
        step_title=view.step_title,
        total_steps=view.total_steps,
        percentage=view.percentage,
        order_status=view.order_status,
        qc_status=view.qc_status,
        updated_at=view.updated_at,
    )


# ---------------------------------------------------------------------------
# Team Router
# ---------------------------------------------------------------------------
team_router = APIRouter(prefix="/teams", tags=["teams"])


@team_router.get("/{category}/orders")
async def get_team_orders(category: str, order_type: str = "all") -> list[dict]:
    """Orders with work for one team, trimmed to that team's category."""
    return queries.team_orders(category, order_type)
