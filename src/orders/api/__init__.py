"""Orders domain API package."""

from orders.api.errors import install_error_handlers
from orders.api.routes import order_router

__all__ = ["order_router", "install_error_handlers"]
