"""Pydantic request/response schemas for the Orders API.

These are the external contracts: camelCase on the wire, snake_case in
Python, kept apart from the Order aggregate and its commands.
"""

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from orders.order.placement import DraftOrder
from orders.order.pricing import RequestedItem


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(CamelModel):
    full_name: str
    phone_number: str
    street_address: str
    city: str
    state: str | None = None
    postal_code: str
    country: str = "Vietnam"


class PaymentMethodSchema(CamelModel):
    type: str
    details: dict | None = None


class VariantSchema(CamelModel):
    variant_id: str
    name: str
    color: str | None = None
    size: str | None = None


class BlindboxItemSchema(CamelModel):
    name: str | None = None
    rarity: str | None = None
    image: str | None = None


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class OrderItemRequest(CamelModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(ge=1, default=1)
    blindbox_item: BlindboxItemSchema | None = None


class CreateOrderRequest(CamelModel):
    items: list[OrderItemRequest] = Field(default_factory=list)
    store_id: str | None = None
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    payment_method: PaymentMethodSchema | None = None
    notes: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "items": [{"productId": "prod-001", "variantId": "var-red", "quantity": 2}],
                    "storeId": "store-001",
                    "shippingAddress": {
                        "fullName": "Nguyen Van A",
                        "phoneNumber": "0901234567",
                        "streetAddress": "12 Le Loi",
                        "city": "Ho Chi Minh City",
                        "postalCode": "700000",
                        "country": "Vietnam",
                    },
                    "paymentMethod": {"type": "cod"},
                }
            ]
        },
    )

    def to_draft(self) -> DraftOrder:
        return DraftOrder(
            items=[
                RequestedItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    variant_id=item.variant_id,
                    blindbox_item=item.blindbox_item.model_dump() if item.blindbox_item else None,
                )
                for item in self.items
            ],
            store_id=self.store_id,
            shipping_address=self.shipping_address.model_dump() if self.shipping_address else None,
            billing_address=self.billing_address.model_dump() if self.billing_address else None,
            payment_method=self.payment_method.model_dump() if self.payment_method else None,
            notes=self.notes,
        )


class UpdateStatusRequest(CamelModel):
    status: str
    note: str | None = None
    cancellation_reason: str | None = None
    return_reason: str | None = None
    expected_status: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CustomerSchema(CamelModel):
    user_id: str
    name: str
    email: str


class StoreSchema(CamelModel):
    store_id: str
    name: str


class ProductSchema(CamelModel):
    product_id: str
    name: str
    price: float
    image: str | None = None
    variant: VariantSchema | None = None
    blindbox_item: BlindboxItemSchema | None = None


class OrderItemResponse(CamelModel):
    product: ProductSchema
    quantity: int
    price: float
    subtotal: float


class StatusChangeSchema(CamelModel):
    status: str
    note: str | None = None
    changed_by: str
    timestamp: datetime


class OrderResponse(CamelModel):
    id: str
    order_number: str
    user: CustomerSchema
    store: StoreSchema
    items: list[OrderItemResponse]
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    payment_method: PaymentMethodSchema
    payment_status: str
    status: str
    status_history: list[StatusChangeSchema]
    subtotal: float
    shipping_fee: float
    discount: float
    total: float
    notes: str | None = None
    cancellation_reason: str | None = None
    cancelled_by: str | None = None
    return_reason: str | None = None
    estimated_delivery_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            user=CustomerSchema(
                user_id=str(order.customer_id),
                name=order.customer.name,
                email=order.customer.email,
            ),
            store=StoreSchema(store_id=str(order.store_id), name=order.store_name),
            items=[
                OrderItemResponse(
                    product=ProductSchema(
                        product_id=str(item.product_id),
                        name=item.name,
                        price=item.unit_price,
                        image=item.image,
                        variant=_variant(item.variant),
                        blindbox_item=_blindbox_item(item.blindbox_item),
                    ),
                    quantity=item.quantity,
                    price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in order.lines
            ],
            shipping_address=_address(order.shipping_address),
            billing_address=_address(order.billing_address) if order.billing_address else None,
            payment_method=PaymentMethodSchema(
                type=order.payment_method.kind,
                details=json.loads(order.payment_method.details) if order.payment_method.details else None,
            ),
            payment_status=order.payment_status,
            status=order.status,
            status_history=[
                StatusChangeSchema(
                    status=entry.status,
                    note=entry.note,
                    changed_by=entry.changed_by,
                    timestamp=entry.timestamp,
                )
                for entry in order.history
            ],
            subtotal=order.subtotal,
            shipping_fee=order.shipping_fee or 0.0,
            discount=order.discount or 0.0,
            total=order.total,
            notes=order.notes,
            cancellation_reason=order.cancellation_reason,
            cancelled_by=order.cancelled_by,
            return_reason=order.return_reason,
            estimated_delivery_date=order.estimated_delivery_date,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(CamelModel):
    count: int
    total: int
    total_pages: int
    current_page: int
    orders: list[OrderResponse]


class StatusRevenueSchema(CamelModel):
    status: str
    count: int
    revenue: float


class DailyRevenueSchema(CamelModel):
    date: str
    revenue: float
    orders: int


class OrderStatisticsResponse(CamelModel):
    total_orders: int
    orders_by_status: list[StatusRevenueSchema]
    daily_revenue: list[DailyRevenueSchema]


def _address(address) -> AddressSchema:
    return AddressSchema(
        full_name=address.full_name,
        phone_number=address.phone_number,
        street_address=address.street_address,
        city=address.city,
        state=address.state,
        postal_code=address.postal_code,
        country=address.country,
    )


def _variant(variant) -> VariantSchema | None:
    if not variant:
        return None
    return VariantSchema(
        variant_id=str(variant.variant_id),
        name=variant.name,
        color=variant.color,
        size=variant.size,
    )


def _blindbox_item(item) -> BlindboxItemSchema | None:
    if not item:
        return None
    return BlindboxItemSchema(name=item.name, rarity=item.rarity, image=item.image)
