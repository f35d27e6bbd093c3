"""In-memory store directory for development and testing."""

from orders.errors import UpstreamUnavailable
from orders.stores.port import StoreDirectory, StoreSnapshot


class FakeStoreDirectory(StoreDirectory):
    def __init__(self) -> None:
        self._stores: dict[str, StoreSnapshot] = {}
        self.available = True

    def add_store(self, store_id: str, name: str) -> StoreSnapshot:
        store = StoreSnapshot(id=store_id, name=name)
        self._stores[store_id] = store
        return store

    def fetch_store(self, store_id: str) -> StoreSnapshot | None:
        if not self.available:
            raise UpstreamUnavailable("Store service timed out", identifier=store_id, service="store")
        return self._stores.get(store_id)
