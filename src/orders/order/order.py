"""Order aggregate (CQRS) - the record of a single marketplace purchase.

An order is created in ``processing`` status once it has been priced and
numbered, and from then on only moves through the status machine:

    processing -> confirmed -> shipping -> delivered -> returned
    processing -> cancelled

``cancelled`` and ``returned`` are terminal. Every transition, including
creation, appends an entry to the status history. Who may request a
transition depends on the caller's role and on ownership of the order.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from orders.domain import orders
from orders.errors import BadRequest, Forbidden, InvalidTransition
from orders.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentType(Enum):
    COD = "cod"
    CARD = "card"
    BANKING = "banking"
    WALLET = "wallet"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class Role(Enum):
    USER = "user"
    SELLER = "seller"
    ADMIN = "admin"
    SYSTEM = "system"


_VALID_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPING},
    OrderStatus.SHIPPING: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.RETURNED: set(),  # Terminal
}

DEFAULT_REASON = "No reason provided"
STOCK_FAILURE_REASON = "Stock reservation failed"
CREATION_NOTE = "Order created"


@dataclass(frozen=True)
class Actor:
    """Who is acting on an order: a role plus the identities it owns."""

    role: str
    id: str | None = None
    store_id: str | None = None

    @classmethod
    def system(cls) -> "Actor":
        return cls(role=Role.SYSTEM.value)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@orders.value_object(part_of="Order")
class Address:
    """A delivery or billing address, copied onto the order at placement."""

    full_name = String(required=True, max_length=255)
    phone_number = String(required=True, max_length=30)
    street_address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@orders.value_object(part_of="Order")
class PaymentMethod:
    kind = String(required=True, choices=PaymentType)
    details = Text()  # JSON: opaque provider details


@orders.value_object(part_of="Order")
class CustomerSnapshot:
    """The buyer's name and email as they were when the order was placed."""

    name = String(required=True, max_length=255)
    email = String(required=True, max_length=255)


@orders.value_object(part_of="Order")
class VariantChoice:
    variant_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    color = String(max_length=100)
    size = String(max_length=100)


@orders.value_object(part_of="Order")
class BlindboxReveal:
    """The item revealed when a blind box was opened."""

    name = String(max_length=255)
    rarity = String(max_length=50)
    image = String(max_length=1024)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@orders.entity(part_of="Order")
class OrderItem:
    """A priced line of an order. Prices are frozen at placement time."""

    position = Integer(required=True, min_value=0)
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image = String(max_length=1024)
    variant = ValueObject(VariantChoice)
    blindbox_item = ValueObject(BlindboxReveal)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    subtotal = Float(required=True, min_value=0.0)

    @property
    def variant_id(self):
        return self.variant.variant_id if self.variant else None


@orders.entity(part_of="Order")
class StatusChange:
    sequence = Integer(required=True, min_value=0)
    status = String(required=True, choices=OrderStatus)
    note = String(max_length=500)
    changed_by = String(required=True, max_length=50)
    timestamp = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@orders.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    customer_id = Identifier(required=True)
    customer = ValueObject(CustomerSnapshot)
    store_id = Identifier(required=True)
    store_name = String(required=True, max_length=255)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    payment_method = ValueObject(PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    status = String(choices=OrderStatus, default=OrderStatus.PROCESSING.value)
    status_history = HasMany(StatusChange)
    subtotal = Float(required=True, min_value=0.0)
    shipping_fee = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    notes = Text()
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    return_reason = String(max_length=500)
    estimated_delivery_date = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_add_up(self):
        if self.total is None or self.subtotal is None:
            return
        expected = self.subtotal + (self.shipping_fee or 0.0) - (self.discount or 0.0)
        if abs(self.total - expected) > 1e-6:
            raise ValidationError({"total": ["Total must equal subtotal + shipping fee - discount"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        customer_id,
        customer_name,
        customer_email,
        store_id,
        store_name,
        items_data,
        pricing,
        shipping_address,
        payment_method,
        billing_address=None,
        notes=None,
        placed_at=None,
    ):
        """Create an order in processing status.

        Args:
            order_number: A number already checked for uniqueness.
            items_data: List of priced line dicts with product_id, name,
                        image, unit_price, quantity, subtotal and optional
                        variant / blindbox_item dicts.
            pricing: Dict with subtotal, shipping_fee, discount, total.
            shipping_address: Address dict. Also used as billing address
                              when ``billing_address`` is not given.
            payment_method: Dict with ``type`` and optional ``details``.
        """
        now = placed_at or datetime.now(UTC)
        billing_address = billing_address or shipping_address

        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            customer=CustomerSnapshot(name=customer_name, email=customer_email),
            store_id=store_id,
            store_name=store_name,
            items=[_line_item(position, item) for position, item in enumerate(items_data)],
            shipping_address=Address(**shipping_address),
            billing_address=Address(**billing_address),
            payment_method=PaymentMethod(
                kind=payment_method["type"],
                details=json.dumps(payment_method["details"]) if payment_method.get("details") else None,
            ),
            payment_status=PaymentStatus.PENDING.value,
            status=OrderStatus.PROCESSING.value,
            status_history=[
                StatusChange(
                    sequence=0,
                    status=OrderStatus.PROCESSING.value,
                    note=CREATION_NOTE,
                    changed_by=Role.USER.value,
                    timestamp=now,
                )
            ],
            subtotal=pricing["subtotal"],
            shipping_fee=pricing["shipping_fee"],
            discount=pricing["discount"],
            total=pricing["total"],
            notes=notes,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                store_id=str(store_id),
                items=json.dumps(items_data),
                subtotal=order.subtotal,
                shipping_fee=order.shipping_fee,
                discount=order.discount,
                total=order.total,
                payment_type=payment_method["type"],
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def lines(self):
        """Line items in the order they were requested."""
        return sorted(self.items or [], key=lambda item: item.position)

    @property
    def history(self):
        """Status history, oldest entry first."""
        return sorted(self.status_history or [], key=lambda entry: entry.sequence)

    def is_visible_to(self, actor: Actor) -> bool:
        role = actor.role
        if role in (Role.ADMIN.value, Role.SYSTEM.value):
            return True
        if role == Role.SELLER.value:
            return actor.store_id is not None and str(actor.store_id) == str(self.store_id)
        if role == Role.USER.value:
            return actor.id is not None and str(actor.id) == str(self.customer_id)
        return False

    # -------------------------------------------------------------------
    # Status machine
    # -------------------------------------------------------------------
    def change_status(self, status, actor: Actor, note=None, reason=None):
        """Move the order to ``status`` on behalf of ``actor``.

        Role and ownership are checked before the transition itself.
        """
        target = _parse_status(status)
        self._authorize(target, actor)
        self._ensure_transition_allowed(target)
        self._record_transition(target, actor.role, note=note, reason=reason)

    def cancel_for_stock_failure(self):
        """Cancel on behalf of the system after stock could not be reserved."""
        self._ensure_transition_allowed(OrderStatus.CANCELLED)
        self._record_transition(
            OrderStatus.CANCELLED,
            Role.SYSTEM.value,
            note=STOCK_FAILURE_REASON,
            reason=STOCK_FAILURE_REASON,
        )

    def _authorize(self, target, actor):
        role = actor.role
        if role in (Role.ADMIN.value, Role.SYSTEM.value):
            return

        if role == Role.SELLER.value:
            if not self.is_visible_to(actor):
                raise Forbidden("Access denied", identifier=str(self.id))
            return

        if role == Role.USER.value:
            if not self.is_visible_to(actor):
                raise Forbidden("Access denied", identifier=str(self.id))
            current = OrderStatus(self.status)
            if target != OrderStatus.CANCELLED or current != OrderStatus.PROCESSING:
                raise Forbidden(
                    "Users can only cancel orders that are still processing",
                    identifier=str(self.id),
                )
            return

        raise Forbidden(f"Role '{role}' may not change order status", identifier=str(self.id))

    def _ensure_transition_allowed(self, target):
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidTransition(
                f"Cannot transition from {current.value} to {target.value}",
                identifier=str(self.id),
            )

    def _record_transition(self, target, changed_by, note=None, reason=None):
        now = datetime.now(UTC)
        previous = self.status
        note = note or f"Status updated to {target.value}"

        self.status = target.value
        self.add_status_history(
            StatusChange(
                sequence=len(self.status_history or []),
                status=target.value,
                note=note,
                changed_by=changed_by,
                timestamp=now,
            )
        )
        if target == OrderStatus.CANCELLED:
            self.cancellation_reason = reason or DEFAULT_REASON
            self.cancelled_by = changed_by
        elif target == OrderStatus.RETURNED:
            self.return_reason = reason or DEFAULT_REASON
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                status=target.value,
                note=note,
                changed_by=changed_by,
                changed_at=now,
            )
        )
        if target == OrderStatus.CANCELLED:
            self.raise_(
                OrderCancelled(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    reason=self.cancellation_reason,
                    cancelled_by=changed_by,
                    cancelled_at=now,
                )
            )


def _parse_status(status):
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError:
        raise BadRequest(f"Unknown order status '{status}'", identifier="status") from None


def _line_item(position, item):
    variant = item.get("variant")
    blindbox_item = item.get("blindbox_item")
    return OrderItem(
        position=position,
        product_id=item["product_id"],
        name=item["name"],
        image=item.get("image"),
        variant=VariantChoice(**variant) if variant else None,
        blindbox_item=BlindboxReveal(**blindbox_item) if blindbox_item else None,
        unit_price=item["unit_price"],
        quantity=item["quantity"],
        subtotal=item["subtotal"],
    )
