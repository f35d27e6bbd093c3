"""Domain events for the Order aggregate.

Events are raised by the aggregate and dispatched when the repository
commits the order, so nothing is announced for an order that was never
stored.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from orders.domain import orders


@orders.event(part_of="Order")
class OrderPlaced:
    """An order was priced, numbered and stored in processing status."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    store_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of priced line dicts
    subtotal = Float(required=True)
    shipping_fee = Float()
    discount = Float()
    total = Float(required=True)
    payment_type = String()
    placed_at = DateTime(required=True)


@orders.event(part_of="Order")
class OrderStatusChanged:
    """An order moved from one status to another."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    note = String()
    changed_by = String(required=True)
    changed_at = DateTime(required=True)


@orders.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = String(required=True)
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)
