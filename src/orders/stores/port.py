"""Store directory port (abstract interface).

The order pipeline only needs a store's identity and display name to take a
snapshot of the seller at placement time.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StoreSnapshot:
    """Seller identity as reported by the store service."""

    id: str
    name: str


class StoreDirectory(ABC):
    """Abstract store lookup interface."""

    @abstractmethod
    def fetch_store(self, store_id: str) -> StoreSnapshot | None:
        """Return the store, or None when it does not exist.

        Raises ``UpstreamUnavailable`` on timeouts or network failures.
        """
        ...
