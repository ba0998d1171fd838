"""Pydantic API schemas for the Production domain.

These are the external API contracts — separate from domain commands.
The API layer translates between these schemas and domain commands.
"""

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class AssignmentRequest(BaseModel):
    name: str
    quantity: int
    team: str | None = None
    material: str | None = None
    size: str | None = None
    neck_size: str | None = None
    neck_type: str | None = None
    weight: str | None = None
    process: str | None = None
    decoration: str | None = None
    decoration_no: str | None = None
    decoration_details: str | None = None
    approval_code: str | None = None
    rate_per_1000: float | None = None


class ItemRequest(BaseModel):
    name: str
    team_assignments: dict[str, list[AssignmentRequest]] = {}


class CostConfigRequest(BaseModel):
    shipping_cost: float | None = None
    handling_cost: float | None = None
    tax_rate: float | None = None
    insurance: float | None = None
    expedited_shipping: float | None = None
    special_handling: float | None = None


class CreateOrderRequest(BaseModel):
    order_number: str
    dispatcher_name: str
    customer_name: str
    order_status: str | None = None
    items: list[ItemRequest] = []
    cost_config: CostConfigRequest | None = None


class EditOrderRequest(BaseModel):
    dispatcher_name: str | None = None
    customer_name: str | None = None
    order_status: str | None = None
    items: list[ItemRequest]
    cost_config: CostConfigRequest | None = None


class CompletionEntryRequest(BaseModel):
    quantity: int
    date: datetime | None = None
    author: str


class ProgressUpdateRequest(BaseModel):
    assignment_id: str
    entry: CompletionEntryRequest
    new_total_completed: int
    new_status: str


class ProgressRequest(BaseModel):
    item_id: str | None = None
    updates: list[ProgressUpdateRequest] | None = None
    qc_status: str | None = None
    submitted_by: str | None = None


class QcVerdictRequest(BaseModel):
    verdict: str
    recorded_by: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class UpdatedAssignmentResponse(BaseModel):
    assignment_id: str
    new_status: str
    total_completed: int


class ProgressResponse(BaseModel):
    order: dict
    updated_assignments: list[UpdatedAssignmentResponse]


class DeleteOrderResponse(BaseModel):
    order_number: str
    deleted_assignments: int


class ProgressViewResponse(BaseModel):
    order_number: str
    customer_name: str
    current_step: int
    step_title: str
    total_steps: int
    percentage: int
    order_status: str | None = None
    qc_status: str | None = None
    updated_at: datetime | None = None
