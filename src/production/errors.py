"""Error taxonomy for the fulfillment ledger.

Validation-type failures build on Protean's exceptions so the FastAPI
integration maps them to HTTP responses. Conflict and StoreFault are
retryable: the caller should resubmit the whole request.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class InvalidRequest(ValidationError):
    """The request is malformed or incomplete. Raised before the store is touched."""


class CapacityExceeded(ValidationError):
    """A reported quantity would push an assignment past its ordered quantity."""

    def __init__(self, assignment_id, category, requested, remaining):
        self.assignment_id = str(assignment_id)
        self.category = category
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            {
                "quantity": [
                    f"Assignment {self.assignment_id} ({category}) has {remaining} unit(s) remaining; "
                    f"{requested} reported"
                ]
            }
        )


class NotFound(ObjectNotFoundError):
    """An order, item or assignment referenced by the request does not exist."""

    def __init__(self, entity, identifier, detail=None):
        self.entity = entity
        self.identifier = str(identifier)
        message = f"{entity} {self.identifier} not found"
        if detail:
            message = f"{message} {detail}"
        super().__init__({"_entity": message})


class Conflict(Exception):
    """A concurrent change invalidated the request. Retry the whole request."""

    retryable = True

    def __init__(self, message, order_number=None, assignment_id=None):
        self.order_number = order_number
        self.assignment_id = assignment_id
        self.messages = {"_conflict": [message]}
        super().__init__(message)


class StoreFault(Exception):
    """The store is unavailable or a unit of work did not complete. Reload, then retry."""

    retryable = True

    def __init__(self, message, order_number=None):
        self.order_number = order_number
        self.messages = {"_store": [message]}
        super().__init__(message)
