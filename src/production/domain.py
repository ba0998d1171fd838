"""Production bounded context — Order Fulfillment Ledger and Completion Rollup.

Tracks manufacturing orders made of items, each item carrying team-specific
production assignments (glass, caps, boxes, pumps). Teams report partial
completion over time; completion rolls up assignment → item → order, and an
independent QC verdict gates order completion. Uses CQRS: aggregates are
persisted as current state and a projection serves the customer-facing view.
"""

from protean.domain import Domain

from production.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
production = Domain(name="production")
