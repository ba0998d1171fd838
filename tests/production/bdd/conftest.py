"""Shared BDD fixtures and step definitions for production tracking."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then, when

from production.errors import CapacityExceeded, Conflict, InvalidRequest
from production.order.queries import get_order
from production.projections.order_progress import OrderProgressView
from production.tracking.service import apply_updates, set_verdict


@pytest.fixture()
def error():
    """Container for the failure of the last step, if any."""
    return {"exc": None}


def _glass(order):
    item = order["items"][0]
    return item["item_id"], item["team_assignments"]["glass"][0]["assignment_id"]


def _report(order, progress_update, quantity, expected_total):
    item_id, aid = _glass(order)
    status = "Completed" if expected_total == order["items"][0]["team_assignments"]["glass"][0]["quantity"] else "Pending"
    apply_updates(
        order["order_number"],
        item_id=item_id,
        updates=[progress_update(aid, quantity, expected_total, status)],
    )


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an order "{order_number}" with {quantity:d} glass units'), target_fixture="order")
def order_with_glass(create_order, order_items, order_number, quantity):
    return create_order(order_number=order_number, items=order_items(glass_qty=quantity))


@given(parsers.cfparse("the glass team has already reported {quantity:d} units"))
def already_reported(order, progress_update, quantity):
    _report(order, progress_update, quantity, quantity)


@given("the order is fully produced and signed off")
def produced_and_signed_off(order, progress_update):
    _report(order, progress_update, 100, 100)
    set_verdict(order["order_number"], "Completed")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the glass team reports {quantity:d} units with an expected total of {expected:d}"))
def glass_team_reports(order, progress_update, error, quantity, expected):
    try:
        _report(order, progress_update, quantity, expected)
    except (InvalidRequest, CapacityExceeded, Conflict) as exc:
        error["exc"] = exc


@when(parsers.cfparse('QC records the verdict "{verdict}"'))
def qc_records(order, error, verdict):
    try:
        set_verdict(order["order_number"], verdict, recorded_by="qc-lead")
    except InvalidRequest as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the glass assignment has {quantity:d} units completed"))
def glass_completed(order, quantity):
    glass = get_order(order["order_number"])["items"][0]["team_assignments"]["glass"][0]
    assert glass["tracking"]["total_completed_qty"] == quantity


@then(parsers.cfparse('the glass status of the item is "{status}"'))
def glass_status(order, status):
    assert get_order(order["order_number"])["items"][0]["team_status"]["glass"] == status


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert get_order(order["order_number"])["order_status"] == status


@then(parsers.cfparse("the order progress is {percentage:d} percent"))
def order_progress(order, percentage):
    assert get_order(order["order_number"])["progress"]["percentage"] == percentage


@then(parsers.cfparse('the customer sees step {step:d} "{title}"'))
def customer_step(order, step, title):
    view = current_domain.repository_for(OrderProgressView).get(order["order_number"])
    assert (view.current_step, view.step_title) == (step, title)


@then("the update fails with a capacity error")
def fails_with_capacity(error):
    assert isinstance(error["exc"], CapacityExceeded)


@then("the update fails with a conflict")
def fails_with_conflict(error):
    assert isinstance(error["exc"], Conflict)


@then("the update fails with a validation error")
def fails_with_validation(error):
    assert isinstance(error["exc"], InvalidRequest)
