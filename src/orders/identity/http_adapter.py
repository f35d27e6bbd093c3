"""HTTP adapter for the auth service's token verification endpoint.

Contract:
    POST /api/auth/verify-token {"token"} -> {"user": {"id", "role", "storeId"?, "firstName", "lastName", "email"}}
"""

import httpx
import structlog

from orders.config import PipelineConfig
from orders.errors import UpstreamUnavailable
from orders.identity.port import Caller, TokenVerifier

logger = structlog.get_logger(__name__)


class HttpTokenVerifier(TokenVerifier):
    def __init__(self, config: PipelineConfig, transport: httpx.BaseTransport | None = None) -> None:
        self._client = httpx.Client(
            base_url=config.auth_url,
            timeout=config.http_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def verify(self, token: str) -> Caller | None:
        try:
            response = self._client.post("/api/auth/verify-token", json={"token": token})
        except httpx.TransportError as exc:
            raise UpstreamUnavailable("Auth service unreachable", service="auth") from exc

        if response.status_code in (400, 401, 403):
            logger.info("Token rejected by auth service", status_code=response.status_code)
            return None
        if not response.is_success:
            raise UpstreamUnavailable(f"Auth service answered {response.status_code}", service="auth")

        user = response.json().get("user") or {}
        return Caller(
            id=str(user.get("id") or user.get("_id")),
            role=user.get("role", "user"),
            email=user.get("email", ""),
            first_name=user.get("firstName", ""),
            last_name=user.get("lastName", ""),
            store_id=str(user["storeId"]) if user.get("storeId") else None,
        )
