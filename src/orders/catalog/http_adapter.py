"""HTTP adapter for the product catalog service.

Contract:
    GET /api/products/{id}                  -> {"product": {...}}
    PUT /api/products/{id}/decrease-stock   {"quantity", "variantId"?}
    PUT /api/products/{id}/increase-stock   {"quantity", "variantId"?}

Reads are retried on transport failures. Stock adjustments are sent exactly
once; a timed-out adjustment is reported as unavailable and left to the
caller to reconcile.
"""

import httpx
import structlog

from orders.catalog.port import (
    AdjustmentOutcome,
    CatalogClient,
    ProductSnapshot,
    StockAdjustment,
    VariantSnapshot,
)
from orders.config import PipelineConfig
from orders.errors import UpstreamUnavailable

logger = structlog.get_logger(__name__)

_REJECTION_CODES = {400, 409, 422}


def _identifier(data: dict) -> str:
    return str(data.get("id") or data.get("_id"))


def parse_product(data: dict) -> ProductSnapshot:
    """Build a snapshot from the catalog's product document."""
    product = data.get("product", data)
    return ProductSnapshot(
        id=_identifier(product),
        name=product["name"],
        price=float(product["price"]),
        stock=int(product.get("stock") or 0),
        is_active=bool(product.get("isActive", True)),
        image=product.get("thumbnail") or product.get("image"),
        variants=tuple(
            VariantSnapshot(
                id=_identifier(variant),
                name=variant["name"],
                stock=int(variant.get("stock") or 0),
                price=float(variant["price"]) if variant.get("price") is not None else None,
                color=variant.get("color"),
                size=variant.get("size"),
            )
            for variant in product.get("variants") or []
        ),
    )


class HttpCatalogClient(CatalogClient):
    """Catalog client speaking to the product service over HTTP."""

    def __init__(self, config: PipelineConfig, transport: httpx.BaseTransport | None = None) -> None:
        self.config = config
        self._client = httpx.Client(
            base_url=config.catalog_url,
            timeout=config.http_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch_product(self, product_id: str) -> ProductSnapshot | None:
        attempts = self.config.fetch_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = self._client.get(f"/api/products/{product_id}")
            except httpx.TransportError as exc:
                logger.warning(
                    "Catalog read failed",
                    product_id=product_id,
                    attempt=attempt,
                    error=str(exc),
                )
                if attempt == attempts:
                    raise UpstreamUnavailable(
                        f"Catalog unreachable while reading product {product_id}",
                        identifier=product_id,
                        service="catalog",
                    ) from exc
                continue

            if response.status_code == 404:
                return None
            if not response.is_success:
                raise UpstreamUnavailable(
                    f"Catalog answered {response.status_code} for product {product_id}",
                    identifier=product_id,
                    service="catalog",
                )
            return parse_product(response.json())

    def adjust_stock(self, product_id: str, delta: int, variant_id: str | None = None) -> StockAdjustment:
        action = "decrease-stock" if delta < 0 else "increase-stock"
        payload = {"quantity": abs(delta)}
        if variant_id is not None:
            payload["variantId"] = variant_id

        try:
            response = self._client.put(f"/api/products/{product_id}/{action}", json=payload)
        except httpx.TransportError as exc:
            logger.error(
                "Stock adjustment outcome unknown",
                product_id=product_id,
                variant_id=variant_id,
                delta=delta,
                error=str(exc),
            )
            raise UpstreamUnavailable(
                f"Catalog unreachable while adjusting stock of {product_id}",
                identifier=product_id,
                service="catalog",
            ) from exc

        if response.is_success:
            return StockAdjustment(AdjustmentOutcome.OK, product_id, variant_id, delta)
        if response.status_code == 404:
            return StockAdjustment(AdjustmentOutcome.NOT_FOUND, product_id, variant_id, delta, "Product not found")
        if response.status_code in _REJECTION_CODES:
            return StockAdjustment(
                AdjustmentOutcome.INSUFFICIENT_STOCK,
                product_id,
                variant_id,
                delta,
                _message(response),
            )
        raise UpstreamUnavailable(
            f"Catalog answered {response.status_code} while adjusting stock of {product_id}",
            identifier=product_id,
            service="catalog",
        )


def _message(response: httpx.Response) -> str:
    try:
        return response.json().get("message") or response.text
    except ValueError:
        return response.text
