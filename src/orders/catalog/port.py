"""Product catalog port (abstract interface).

Everything the order pipeline needs from the product service sits behind
two operations: read a product snapshot and adjust its stock. Adapters can
talk HTTP to the catalog service or keep everything in memory for tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class VariantSnapshot:
    """A product variant as reported by the catalog at read time."""

    id: str
    name: str
    stock: int
    price: float | None = None
    color: str | None = None
    size: str | None = None


@dataclass(frozen=True)
class ProductSnapshot:
    """Current catalog data for a product."""

    id: str
    name: str
    price: float
    stock: int
    is_active: bool = True
    image: str | None = None
    variants: tuple[VariantSnapshot, ...] = field(default_factory=tuple)

    def variant(self, variant_id: str) -> VariantSnapshot | None:
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)


class AdjustmentOutcome(Enum):
    OK = "ok"
    INSUFFICIENT_STOCK = "insufficient_stock"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class StockAdjustment:
    """Result of a stock adjustment attempt."""

    outcome: AdjustmentOutcome
    product_id: str
    variant_id: str | None = None
    delta: int = 0
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == AdjustmentOutcome.OK


class CatalogClient(ABC):
    """Abstract product catalog interface.

    Implementations of ``adjust_stock`` must check and decrement atomically:
    two concurrent decrements may never take stock below zero.
    """

    @abstractmethod
    def fetch_product(self, product_id: str) -> ProductSnapshot | None:
        """Return the product snapshot, or None when the product does not exist."""
        ...

    @abstractmethod
    def adjust_stock(self, product_id: str, delta: int, variant_id: str | None = None) -> StockAdjustment:
        """Apply ``delta`` to the stock of a product (or one of its variants).

        A negative delta reserves stock for an order, a positive delta
        restores it. Raises ``UpstreamUnavailable`` on timeouts or network
        failures.
        """
        ...
