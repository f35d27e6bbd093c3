"""Orders bounded context: order placement, stock reservation and status tracking.

Coordinates the product catalog and store services to turn a buyer's draft
into a persisted Order, and owns the order's lifecycle afterwards.
"""

from protean.domain import Domain

from orders.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

orders = Domain(name="orders")
