"""Product catalog client factory.

Provides get_catalog() / set_catalog() to swap implementations:
- HttpCatalogClient for talking to the product service
- FakeCatalog for development and testing
"""

from orders.catalog.port import CatalogClient

_current_catalog: CatalogClient | None = None


def get_catalog() -> CatalogClient:
    """Return the current catalog client. Defaults to the HTTP client built from the active config."""
    global _current_catalog
    if _current_catalog is None:
        from orders.catalog.http_adapter import HttpCatalogClient
        from orders.config import get_config

        _current_catalog = HttpCatalogClient(get_config())
    return _current_catalog


def set_catalog(catalog: CatalogClient) -> None:
    """Override the active catalog client (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default catalog client."""
    global _current_catalog
    _current_catalog = None
