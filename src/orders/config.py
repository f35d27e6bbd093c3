"""Pipeline configuration.

Collaborator URLs and pricing constants live in one immutable object that is
handed to the placement orchestrator and the HTTP adapters. Nothing in the
business logic reads the environment directly.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class PipelineConfig:
    """Settings for the order placement pipeline and its collaborators."""

    catalog_url: str = "http://localhost:2004"
    store_url: str = "http://localhost:2005"
    auth_url: str = "http://localhost:2000"
    http_timeout: float = 5.0
    fetch_retries: int = 2
    shipping_fee: float = 30000.0
    number_prefix: str = "BB"
    number_attempts: int = 5
    persist_attempts: int = 3

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a configuration from environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            catalog_url=os.getenv("PRODUCT_SERVICE_URL", defaults.catalog_url),
            store_url=os.getenv("STORE_SERVICE_URL", defaults.store_url),
            auth_url=os.getenv("AUTH_SERVICE_URL", defaults.auth_url),
            http_timeout=float(os.getenv("ORDER_HTTP_TIMEOUT", defaults.http_timeout)),
            fetch_retries=int(os.getenv("ORDER_FETCH_RETRIES", defaults.fetch_retries)),
            shipping_fee=float(os.getenv("ORDER_SHIPPING_FEE", defaults.shipping_fee)),
            number_attempts=int(os.getenv("ORDER_NUMBER_ATTEMPTS", defaults.number_attempts)),
            persist_attempts=int(os.getenv("ORDER_PERSIST_ATTEMPTS", defaults.persist_attempts)),
        )


_current_config: PipelineConfig | None = None


def get_config() -> PipelineConfig:
    """Return the active configuration. Defaults to one read from the environment."""
    global _current_config
    if _current_config is None:
        _current_config = PipelineConfig.from_env()
    return _current_config


def set_config(config: PipelineConfig) -> None:
    """Override the active configuration (useful for tests)."""
    global _current_config
    _current_config = config


def reset_config() -> None:
    """Reset to the environment-derived configuration."""
    global _current_config
    _current_config = None
