"""Order placement - turns a buyer's draft into a stored order with stock held.

Placement runs in five steps:

1. Validate the draft's shape. Nothing is read or written yet.
2. Price every line against the catalog.
3. Look up the store the order is placed with.
4. Generate an order number and store the order in processing status.
5. Decrement stock line by line.

Steps 1-3 only read, so a failure there leaves nothing behind. Step 4
writes the order before any stock moves. Once step 5 starts it runs to
completion. If a decrement is refused or times out, the lines already
decremented are restored in reverse order and the order is cancelled by the
system. The caller then gets a ``StockConflict`` listing anything that could
not be restored.

Two buyers racing for the last unit both pass pricing (it only reads);
the catalog's atomic decrement decides which one gets it.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from orders.catalog.port import CatalogClient
from orders.config import PipelineConfig
from orders.errors import BadRequest, Conflict, NotFound, StockConflict, UpstreamUnavailable
from orders.identity.port import Caller
from orders.order.numbering import OrderNumberGenerator
from orders.order.order import Order, PaymentType
from orders.order.pricing import FlatShippingFee, PricedItem, PricedOrder, PricingEngine, RequestedItem
from orders.stores.port import StoreDirectory, StoreSnapshot

logger = structlog.get_logger(__name__)

REQUIRED_ADDRESS_FIELDS = ("full_name", "phone_number", "street_address", "city", "postal_code", "country")


@dataclass(frozen=True)
class DraftOrder:
    """What a buyer submits: lines, where to ship, how to pay, which store."""

    items: list[RequestedItem] = field(default_factory=list)
    store_id: str | None = None
    shipping_address: dict | None = None
    billing_address: dict | None = None
    payment_method: dict | None = None
    notes: str | None = None


class OrderPlacement:
    def __init__(
        self,
        config: PipelineConfig,
        catalog: CatalogClient,
        stores: StoreDirectory,
        pricing: PricingEngine | None = None,
        clock: Callable[[], datetime] | None = None,
        rng: Callable[[int], int] | None = None,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.stores = stores
        self.pricing = pricing or PricingEngine(catalog, FlatShippingFee(config.shipping_fee))
        self.clock = clock or (lambda: datetime.now(UTC))
        self.rng = rng

    def place(self, draft: DraftOrder, buyer: Caller) -> Order:
        """Place ``draft`` for ``buyer`` and return the stored order."""
        _validate(draft)

        priced = self._price(draft)
        store = self._store(draft.store_id)
        order = self._persist(draft, buyer, store, priced)
        self._reserve_stock(order, priced)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=buyer.id,
            store_id=store.id,
            total=order.total,
        )
        return order

    # -------------------------------------------------------------------
    # Steps 2-3: reads
    # -------------------------------------------------------------------
    def _price(self, draft: DraftOrder) -> PricedOrder:
        try:
            return self.pricing.price(draft.items)
        except UpstreamUnavailable as exc:
            raise BadRequest(
                f"Could not price order: {exc.message}",
                identifier=exc.identifier,
            ) from exc

    def _store(self, store_id: str) -> StoreSnapshot:
        try:
            store = self.stores.fetch_store(store_id)
        except UpstreamUnavailable as exc:
            raise BadRequest(f"Could not look up store {store_id}", identifier=store_id) from exc
        if store is None:
            raise NotFound(f"Store {store_id} not found", identifier=store_id)
        return store

    # -------------------------------------------------------------------
    # Step 4: number and store
    # -------------------------------------------------------------------
    def _persist(self, draft: DraftOrder, buyer: Caller, store: StoreSnapshot, priced: PricedOrder) -> Order:
        repo = current_domain.repository_for(Order)
        numbers = OrderNumberGenerator(
            exists=repo.number_taken,
            prefix=self.config.number_prefix,
            max_attempts=self.config.number_attempts,
            clock=self.clock,
            rng=self.rng,
        )

        for attempt in range(1, self.config.persist_attempts + 1):
            order_number = numbers.generate()
            order = Order.place(
                order_number=order_number,
                customer_id=buyer.id,
                customer_name=buyer.display_name,
                customer_email=buyer.email,
                store_id=store.id,
                store_name=store.name,
                items_data=[item.as_dict() for item in priced.items],
                pricing=priced.totals(),
                shipping_address=draft.shipping_address,
                billing_address=draft.billing_address,
                payment_method=draft.payment_method,
                notes=draft.notes,
                placed_at=self.clock(),
            )
            try:
                repo.add(order)
                return order
            except ValidationError as exc:
                if "order_number" not in exc.messages:
                    raise
                logger.warning(
                    "Order number already stored, regenerating",
                    order_number=order_number,
                    attempt=attempt,
                )

        raise Conflict(
            f"Could not store order with a unique number after {self.config.persist_attempts} attempts",
            identifier="order_number",
        )

    # -------------------------------------------------------------------
    # Step 5: reserve stock, or compensate and cancel
    # -------------------------------------------------------------------
    def _reserve_stock(self, order: Order, priced: PricedOrder) -> None:
        reserved: list[PricedItem] = []
        for item in priced.items:
            failure, unknown = self._decrement(order, item)
            if failure is None:
                reserved.append(item)
                continue

            unreconciled = [item.product_id] if unknown else []
            unreconciled.extend(self._restore(order, reserved))
            self._cancel(order)
            raise StockConflict(
                failure,
                identifier=item.product_id,
                order_id=str(order.id),
                unreconciled=unreconciled,
            )

    def _decrement(self, order: Order, item: PricedItem) -> tuple[str | None, bool]:
        """Decrement stock for one line.

        Returns ``(None, False)`` on success, otherwise the failure message
        and whether the outcome of the decrement is unknown.
        """
        try:
            adjustment = self.catalog.adjust_stock(item.product_id, -item.quantity, item.variant_id)
        except Exception as exc:
            logger.error(
                "Stock decrement outcome unknown",
                order_id=str(order.id),
                product_id=item.product_id,
                variant_id=item.variant_id,
                quantity=item.quantity,
                error=str(exc),
            )
            return f"Could not reserve stock for {item.name}", True

        if adjustment.ok:
            return None, False

        logger.warning(
            "Stock decrement refused",
            order_id=str(order.id),
            product_id=item.product_id,
            variant_id=item.variant_id,
            quantity=item.quantity,
            outcome=adjustment.outcome.value,
        )
        return adjustment.message or f"Insufficient stock for {item.name}", False

    def _restore(self, order: Order, reserved: list[PricedItem]) -> list[str]:
        """Give back stock already taken, newest first. Returns what could not be restored."""
        unreconciled = []
        for item in reversed(reserved):
            try:
                adjustment = self.catalog.adjust_stock(item.product_id, item.quantity, item.variant_id)
            except Exception as exc:
                adjustment = None
                error = str(exc)
            else:
                error = adjustment.message

            if adjustment is not None and adjustment.ok:
                continue

            logger.error(
                "Stock restore failed, manual reconciliation needed",
                order_id=str(order.id),
                order_number=order.order_number,
                product_id=item.product_id,
                variant_id=item.variant_id,
                quantity=item.quantity,
                error=error,
            )
            unreconciled.append(item.product_id)
        return unreconciled

    def _cancel(self, order: Order) -> None:
        repo = current_domain.repository_for(Order)
        stored = repo.get(order.id)
        stored.cancel_for_stock_failure()
        repo.add(stored)
        logger.info(
            "Order cancelled after stock failure",
            order_id=str(order.id),
            order_number=order.order_number,
        )


def _validate(draft: DraftOrder) -> None:
    if not draft.items:
        raise BadRequest("Order must contain at least one item", identifier="items")

    for index, item in enumerate(draft.items):
        if not item.product_id:
            raise BadRequest("Every item needs a product id", identifier=f"items[{index}].product_id")
        if not isinstance(item.quantity, int) or isinstance(item.quantity, bool) or item.quantity < 1:
            raise BadRequest("Quantity must be a positive whole number", identifier=f"items[{index}].quantity")

    _validate_address(draft.shipping_address, "shipping_address", required=True)
    _validate_address(draft.billing_address, "billing_address", required=False)

    payment_method = draft.payment_method or {}
    if not payment_method.get("type"):
        raise BadRequest("Payment method is required", identifier="payment_method.type")
    if payment_method["type"] not in {kind.value for kind in PaymentType}:
        raise BadRequest(
            f"Unsupported payment method '{payment_method['type']}'",
            identifier="payment_method.type",
        )

    if not draft.store_id:
        raise BadRequest("Store is required", identifier="store_id")


def _validate_address(address, name, required):
    if address is None:
        if required:
            raise BadRequest("Shipping address is required", identifier=name)
        return
    for key in REQUIRED_ADDRESS_FIELDS:
        if not address.get(key):
            raise BadRequest(f"Address field {key} is required", identifier=f"{name}.{key}")
