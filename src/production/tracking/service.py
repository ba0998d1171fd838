"""Caller-facing entry points for progress and QC updates.

The façade validates request structure before any command is built,
processes the command synchronously, and translates store-level failures
into the retryable ``Conflict`` and ``StoreFault`` errors. It never retries.
"""

import json

import structlog
from protean.exceptions import ExpectedVersionError, TransactionError
from protean.utils.globals import current_domain
from sqlalchemy.exc import OperationalError

from production.errors import CapacityExceeded, Conflict, InvalidRequest, NotFound, StoreFault
from production.order.quality import SetQcVerdict, check_verdict
from production.tracking.updates import ApplyProductionUpdates, check_request, parse_updates
from production.utils.logging import bind_order_context, clear_context

logger = structlog.get_logger(__name__)


def apply_updates(
    order_number: str,
    item_id: str | None = None,
    updates: list[dict] | None = None,
    qc_status: str | None = None,
    submitted_by: str | None = None,
) -> dict:
    """Record production progress and/or a QC verdict in one transaction.

    Returns ``{"order": snapshot, "updated_assignments": [...]}``.
    """
    if not order_number:
        raise InvalidRequest({"order_number": ["order_number is required"]})
    check_request(item_id, parse_updates(updates), qc_status)

    command = ApplyProductionUpdates(
        order_number=order_number,
        item_id=item_id,
        updates=json.dumps(updates, default=str) if updates else None,
        qc_status=qc_status,
        submitted_by=submitted_by,
    )
    return process(command, order_number)


def set_verdict(order_number: str, verdict: str, recorded_by: str | None = None) -> dict:
    """Record a QC verdict and re-run the order rollup."""
    if not order_number:
        raise InvalidRequest({"order_number": ["order_number is required"]})
    check_verdict(verdict)
    return process(
        SetQcVerdict(order_number=order_number, verdict=verdict, recorded_by=recorded_by),
        order_number,
    )


def process(command, order_number: str):
    """Run a command synchronously, translating store failures into retryable errors."""
    bind_order_context(order_number, command=type(command).__name__)
    try:
        return current_domain.process(command, asynchronous=False)
    except ExpectedVersionError as exc:
        logger.warning("Concurrent change detected", order_number=order_number, error=str(exc))
        raise Conflict(
            f"Order {order_number} was changed by another request; retry",
            order_number=order_number,
        ) from exc
    except (OperationalError, ConnectionError) as exc:
        logger.error("Store unavailable", order_number=order_number, error=str(exc))
        raise StoreFault(f"Store unavailable while updating order {order_number}", order_number=order_number) from exc
    except TransactionError as exc:
        logger.error(
            "Unit of work failed",
            order_number=order_number,
            error=str(exc),
            original_exception=(getattr(exc, "extra_info", None) or {}).get("original_exception"),
        )
        raise StoreFault(
            f"Transaction for order {order_number} did not complete; reload the order before retrying",
            order_number=order_number,
        ) from exc
    except (InvalidRequest, NotFound, CapacityExceeded, Conflict) as exc:
        logger.info(
            "Command rejected",
            order_number=order_number,
            error_type=type(exc).__name__,
            messages=getattr(exc, "messages", None),
        )
        raise
    finally:
        clear_context()
