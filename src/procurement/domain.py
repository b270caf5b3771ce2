"""Procurement bounded context — pharmacy group buying.

Takes per-pharmacy demand through aggregation, competitive bidding (RFQs),
award, fan-out into pharmacy and supplier orders, escrow accounting and
delivery tracking. State changes raise domain events that are dispatched to
the notification sink after the unit of work commits.
"""

from protean.domain import Domain

from procurement.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
procurement = Domain(name="procurement")
