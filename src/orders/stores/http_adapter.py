"""HTTP adapter for the store service.

Contract:
    GET /api/stores/{id} -> {"store": {"_id" | "id", "name", ...}}
"""

import httpx
import structlog

from orders.config import PipelineConfig
from orders.errors import UpstreamUnavailable
from orders.stores.port import StoreDirectory, StoreSnapshot

logger = structlog.get_logger(__name__)


class HttpStoreDirectory(StoreDirectory):
    """Store lookup over HTTP."""

    def __init__(self, config: PipelineConfig, transport: httpx.BaseTransport | None = None) -> None:
        self.config = config
        self._client = httpx.Client(
            base_url=config.store_url,
            timeout=config.http_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch_store(self, store_id: str) -> StoreSnapshot | None:
        attempts = self.config.fetch_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = self._client.get(f"/api/stores/{store_id}")
            except httpx.TransportError as exc:
                logger.warning("Store read failed", store_id=store_id, attempt=attempt, error=str(exc))
                if attempt == attempts:
                    raise UpstreamUnavailable(
                        f"Store service unreachable while reading store {store_id}",
                        identifier=store_id,
                        service="store",
                    ) from exc
                continue

            if response.status_code == 404:
                return None
            if not response.is_success:
                raise UpstreamUnavailable(
                    f"Store service answered {response.status_code} for store {store_id}",
                    identifier=store_id,
                    service="store",
                )
            store = response.json().get("store", {})
            return StoreSnapshot(id=str(store.get("id") or store.get("_id")), name=store["name"])
