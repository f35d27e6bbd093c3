"""Store directory factory.

Provides get_store_directory() / set_store_directory() to swap implementations:
- HttpStoreDirectory for talking to the store service
- FakeStoreDirectory for development and testing
"""

from orders.stores.port import StoreDirectory

_current_directory: StoreDirectory | None = None


def get_store_directory() -> StoreDirectory:
    """Return the current store directory. Defaults to the HTTP adapter built from the active config."""
    global _current_directory
    if _current_directory is None:
        from orders.config import get_config
        from orders.stores.http_adapter import HttpStoreDirectory

        _current_directory = HttpStoreDirectory(get_config())
    return _current_directory


def set_store_directory(directory: StoreDirectory) -> None:
    """Override the active store directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_store_directory() -> None:
    """Reset to the default store directory."""
    global _current_directory
    _current_directory = None
