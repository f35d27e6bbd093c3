"""In-memory product catalog for development and testing.

Keeps products in a dict guarded by a lock so that stock decrements are an
atomic check-and-set, the same guarantee the real catalog service must give.
Individual products can be configured to fail or time out, and every stock
call is recorded in order for assertions.
"""

import threading
from dataclasses import replace

from orders.catalog.port import (
    AdjustmentOutcome,
    CatalogClient,
    ProductSnapshot,
    StockAdjustment,
    VariantSnapshot,
)
from orders.errors import UpstreamUnavailable


class FakeCatalog(CatalogClient):
    """Thread-safe in-memory catalog."""

    def __init__(self) -> None:
        self._products: dict[str, ProductSnapshot] = {}
        self._lock = threading.Lock()
        self.unavailable: set[str] = set()
        self.rejected: dict[str, AdjustmentOutcome] = {}
        self.calls: list[dict] = []

    def add_product(
        self,
        product_id: str,
        name: str,
        price: float,
        stock: int,
        is_active: bool = True,
        image: str | None = None,
        variants: list[dict] | None = None,
    ) -> ProductSnapshot:
        product = ProductSnapshot(
            id=product_id,
            name=name,
            price=price,
            stock=stock,
            is_active=is_active,
            image=image,
            variants=tuple(VariantSnapshot(**variant) for variant in (variants or [])),
        )
        with self._lock:
            self._products[product_id] = product
        return product

    def update_product(self, product_id: str, **changes) -> ProductSnapshot:
        with self._lock:
            product = replace(self._products[product_id], **changes)
            self._products[product_id] = product
        return product

    def stock_of(self, product_id: str, variant_id: str | None = None) -> int:
        with self._lock:
            product = self._products[product_id]
            if variant_id is None:
                return product.stock
            return product.variant(variant_id).stock

    def fail_adjustments_for(self, product_id: str, outcome=AdjustmentOutcome.INSUFFICIENT_STOCK) -> None:
        """Make every stock adjustment of ``product_id`` return ``outcome``."""
        self.rejected[product_id] = outcome

    def make_unavailable(self, product_id: str) -> None:
        """Make every call touching ``product_id`` behave like a timeout."""
        self.unavailable.add(product_id)

    def adjustments(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "adjust_stock"]

    def fetch_product(self, product_id: str) -> ProductSnapshot | None:
        self.calls.append({"method": "fetch_product", "product_id": product_id})
        if product_id in self.unavailable:
            raise UpstreamUnavailable("Catalog timed out", identifier=product_id, service="catalog")
        with self._lock:
            return self._products.get(product_id)

    def adjust_stock(self, product_id: str, delta: int, variant_id: str | None = None) -> StockAdjustment:
        self.calls.append(
            {
                "method": "adjust_stock",
                "product_id": product_id,
                "variant_id": variant_id,
                "delta": delta,
            }
        )
        if product_id in self.unavailable:
            raise UpstreamUnavailable("Catalog timed out", identifier=product_id, service="catalog")
        if product_id in self.rejected:
            return StockAdjustment(
                outcome=self.rejected[product_id],
                product_id=product_id,
                variant_id=variant_id,
                delta=delta,
                message="Rejected by configuration",
            )

        with self._lock:
            product = self._products.get(product_id)
            if product is None:
                return StockAdjustment(AdjustmentOutcome.NOT_FOUND, product_id, variant_id, delta, "Product not found")

            if variant_id is None:
                if product.stock + delta < 0:
                    return StockAdjustment(
                        AdjustmentOutcome.INSUFFICIENT_STOCK,
                        product_id,
                        variant_id,
                        delta,
                        f"{product.name} only has {product.stock} items in stock",
                    )
                self._products[product_id] = replace(product, stock=product.stock + delta)
                return StockAdjustment(AdjustmentOutcome.OK, product_id, variant_id, delta)

            variant = product.variant(variant_id)
            if variant is None:
                return StockAdjustment(AdjustmentOutcome.NOT_FOUND, product_id, variant_id, delta, "Variant not found")
            if variant.stock + delta < 0:
                return StockAdjustment(
                    AdjustmentOutcome.INSUFFICIENT_STOCK,
                    product_id,
                    variant_id,
                    delta,
                    f"{product.name} ({variant.name}) only has {variant.stock} items in stock",
                )
            variants = tuple(
                replace(v, stock=v.stock + delta) if str(v.id) == str(variant_id) else v for v in product.variants
            )
            self._products[product_id] = replace(product, variants=variants)
            return StockAdjustment(AdjustmentOutcome.OK, product_id, variant_id, delta)
