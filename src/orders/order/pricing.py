"""Pricing engine - turns requested lines into priced lines and order totals.

Every requested line is resolved against the catalog: the product must
exist and be active, a referenced variant must exist, and the combined
quantity requested for the same product (or variant) must fit in the
stock reported at read time. Lines are priced at the variant price when
the variant has one, otherwise at the product's base price.

Shipping and discount are pluggable policies. The marketplace currently
charges a flat shipping fee and applies no discount.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import asdict, dataclass, field

import structlog

from orders.catalog.port import CatalogClient, ProductSnapshot
from orders.errors import InvalidItem

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RequestedItem:
    product_id: str
    quantity: int
    variant_id: str | None = None
    blindbox_item: dict | None = None


@dataclass(frozen=True)
class PricedItem:
    """A requested line with the catalog data and price frozen in."""

    product_id: str
    name: str
    unit_price: float
    quantity: int
    subtotal: float
    image: str | None = None
    variant: dict | None = None
    blindbox_item: dict | None = None

    @property
    def variant_id(self) -> str | None:
        return self.variant["variant_id"] if self.variant else None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PricedOrder:
    items: tuple[PricedItem, ...] = field(default_factory=tuple)
    subtotal: float = 0.0
    shipping_fee: float = 0.0
    discount: float = 0.0

    @property
    def total(self) -> float:
        return self.subtotal + self.shipping_fee - self.discount

    def totals(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "shipping_fee": self.shipping_fee,
            "discount": self.discount,
            "total": self.total,
        }


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------
class ShippingPolicy(ABC):
    @abstractmethod
    def fee_for(self, items: tuple[PricedItem, ...], subtotal: float) -> float: ...


class FlatShippingFee(ShippingPolicy):
    """The same fee for every order, whatever its contents."""

    def __init__(self, fee: float) -> None:
        self.fee = fee

    def fee_for(self, items, subtotal):
        return self.fee


class DiscountPolicy(ABC):
    @abstractmethod
    def discount_for(self, items: tuple[PricedItem, ...], subtotal: float, shipping_fee: float) -> float: ...


class NoDiscount(DiscountPolicy):
    def discount_for(self, items, subtotal, shipping_fee):
        return 0.0


class FixedDiscount(DiscountPolicy):
    """A fixed amount off, never taking the total below zero."""

    def __init__(self, amount: float) -> None:
        self.amount = amount

    def discount_for(self, items, subtotal, shipping_fee):
        return max(0.0, min(self.amount, subtotal + shipping_fee))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
class PricingEngine:
    def __init__(
        self,
        catalog: CatalogClient,
        shipping: ShippingPolicy,
        discount: DiscountPolicy | None = None,
    ) -> None:
        self.catalog = catalog
        self.shipping = shipping
        self.discount = discount or NoDiscount()

    def price(self, requested: list[RequestedItem]) -> PricedOrder:
        """Price ``requested`` against current catalog data.

        Raises ``InvalidItem`` for the first line that cannot be priced.
        ``UpstreamUnavailable`` from the catalog propagates unchanged.
        """
        products: dict[str, ProductSnapshot] = {}
        claimed: dict[tuple[str, str | None], int] = defaultdict(int)
        priced = []

        for line in requested:
            product = products.get(line.product_id)
            if product is None:
                product = self.catalog.fetch_product(line.product_id)
                if product is None:
                    raise InvalidItem(line.product_id, f"Product {line.product_id} not found")
                products[line.product_id] = product

            if not product.is_active:
                raise InvalidItem(line.product_id, f"Product {product.name} is not available")

            key = (line.product_id, line.variant_id)
            claimed[key] += line.quantity
            priced.append(self._price_line(product, line, claimed[key]))

        items = tuple(priced)
        subtotal = sum(item.subtotal for item in items)
        shipping_fee = self.shipping.fee_for(items, subtotal)
        offered = self.discount.discount_for(items, subtotal, shipping_fee)
        discount = max(0.0, min(offered, subtotal + shipping_fee))

        logger.debug(
            "Order priced",
            lines=len(items),
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            discount=discount,
        )
        return PricedOrder(items=items, subtotal=subtotal, shipping_fee=shipping_fee, discount=discount)

    def _price_line(self, product: ProductSnapshot, line: RequestedItem, claimed: int) -> PricedItem:
        variant = None
        unit_price = product.price
        available = product.stock
        label = product.name

        if line.variant_id is not None:
            variant = product.variant(line.variant_id)
            if variant is None:
                raise InvalidItem(line.product_id, f"Variant {line.variant_id} not found for {product.name}")
            if variant.price is not None:
                unit_price = variant.price
            available = variant.stock
            label = f"{product.name} ({variant.name})"

        if claimed > available:
            raise InvalidItem(line.product_id, f"{label} only has {available} items in stock")

        return PricedItem(
            product_id=product.id,
            name=product.name,
            unit_price=unit_price,
            quantity=line.quantity,
            subtotal=unit_price * line.quantity,
            image=product.image,
            variant=(
                {
                    "variant_id": variant.id,
                    "name": variant.name,
                    "color": variant.color,
                    "size": variant.size,
                }
                if variant
                else None
            ),
            blindbox_item=line.blindbox_item,
        )
