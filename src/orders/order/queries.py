"""Order read side - single orders, filtered pages and sales statistics.

What a caller may see is decided by role: users see their own orders,
sellers see their store's orders, admins see everything. Date filters,
sorting and pagination are applied after the role-scoped fetch.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from orders.errors import BadRequest, Forbidden, NotFound
from orders.order.order import Actor, Order, OrderStatus, Role

_EXCLUDED_FROM_REVENUE = {OrderStatus.CANCELLED.value, OrderStatus.RETURNED.value}

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class OrderFilters:
    status: str | None = None
    store_id: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    page: int = 1
    limit: int = 10


@dataclass(frozen=True)
class OrderPage:
    orders: list[Order] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def get_order(order_id: str, actor: Actor) -> Order:
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise NotFound(f"Order {order_id} not found", identifier=str(order_id)) from None

    if not order.is_visible_to(actor):
        raise Forbidden("Access denied", identifier=str(order_id))
    return order


def _scope(actor: Actor, store_id: str | None) -> dict:
    """Equality criteria limiting what ``actor`` may read."""
    if actor.role in (Role.ADMIN.value, Role.SYSTEM.value):
        return {"store_id": store_id} if store_id else {}

    if actor.role == Role.SELLER.value:
        if not actor.store_id:
            raise Forbidden("Seller has no store", identifier=actor.id)
        if store_id and str(store_id) != str(actor.store_id):
            raise Forbidden("Access denied", identifier=str(store_id))
        return {"store_id": actor.store_id}

    if actor.role == Role.USER.value:
        if store_id:
            return {"customer_id": actor.id, "store_id": store_id}
        return {"customer_id": actor.id}

    raise Forbidden(f"Role '{actor.role}' may not read orders", identifier=actor.id)


def list_orders(actor: Actor, filters: OrderFilters | None = None) -> OrderPage:
    """Newest-first page of the orders ``actor`` may see."""
    filters = filters or OrderFilters()
    if filters.page < 1:
        raise BadRequest("Page must be 1 or greater", identifier="page")
    if not 1 <= filters.limit <= MAX_PAGE_SIZE:
        raise BadRequest(f"Limit must be between 1 and {MAX_PAGE_SIZE}", identifier="limit")
    if filters.status:
        try:
            OrderStatus(filters.status)
        except ValueError:
            raise BadRequest(f"Unknown order status '{filters.status}'", identifier="status") from None

    criteria = _scope(actor, filters.store_id)
    if filters.status:
        criteria["status"] = filters.status

    found = current_domain.repository_for(Order).matching(**criteria)

    from_date = _as_utc(filters.from_date)
    to_date = _as_utc(filters.to_date)
    if from_date:
        found = [order for order in found if _as_utc(order.created_at) >= from_date]
    if to_date:
        found = [order for order in found if _as_utc(order.created_at) <= to_date]

    found.sort(key=lambda order: _as_utc(order.created_at), reverse=True)
    start = (filters.page - 1) * filters.limit
    return OrderPage(
        orders=found[start : start + filters.limit],
        total=len(found),
        page=filters.page,
        limit=filters.limit,
    )


def order_statistics(actor: Actor, store_id: str | None = None, days: int = 30, now: datetime | None = None) -> dict:
    """Order counts and revenue per status, plus daily revenue for recent days.

    Daily revenue leaves out cancelled and returned orders.
    """
    if actor.role == Role.USER.value:
        raise Forbidden("Users may not read order statistics", identifier=actor.id)

    criteria = _scope(actor, store_id)
    found = current_domain.repository_for(Order).matching(**criteria)

    by_status = defaultdict(lambda: {"count": 0, "revenue": 0.0})
    for order in found:
        by_status[order.status]["count"] += 1
        by_status[order.status]["revenue"] += order.total

    since = (_as_utc(now) or datetime.now(UTC)) - timedelta(days=days)
    daily = defaultdict(lambda: {"revenue": 0.0, "orders": 0})
    for order in found:
        placed_at = _as_utc(order.created_at)
        if order.status in _EXCLUDED_FROM_REVENUE or placed_at < since:
            continue
        day = placed_at.date().isoformat()
        daily[day]["revenue"] += order.total
        daily[day]["orders"] += 1

    return {
        "total_orders": len(found),
        "orders_by_status": [
            {"status": status, "count": stats["count"], "revenue": stats["revenue"]}
            for status, stats in sorted(by_status.items())
        ],
        "daily_revenue": [
            {"date": day, "revenue": stats["revenue"], "orders": stats["orders"]}
            for day, stats in sorted(daily.items(), reverse=True)
        ],
    }
