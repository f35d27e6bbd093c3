"""Request-scoped dependencies: who is calling."""

from fastapi import Header, HTTPException

from orders.identity import get_token_verifier
from orders.identity.port import Caller
from orders.order.order import Actor


def current_caller(authorization: str | None = Header(default=None)) -> Caller:
    """Resolve the bearer token on the request to a caller, or answer 401."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized access")

    token = authorization.removeprefix("Bearer ").strip()
    caller = get_token_verifier().verify(token)
    if caller is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return caller


def actor_for(caller: Caller) -> Actor:
    return Actor(role=caller.role, id=caller.id, store_id=caller.store_id)
