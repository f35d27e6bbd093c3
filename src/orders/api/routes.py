"""FastAPI routes for the Orders domain.

Routes are plain functions: placement and token checks call collaborators
over blocking HTTP, so FastAPI runs them in its threadpool.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from orders.api.dependencies import actor_for, current_caller
from orders.api.schemas import (
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    OrderStatisticsResponse,
    UpdateStatusRequest,
)
from orders.catalog import get_catalog
from orders.config import get_config
from orders.identity.port import Caller
from orders.order.order import Order
from orders.order.placement import OrderPlacement
from orders.order.queries import OrderFilters, get_order, list_orders, order_statistics
from orders.order.status import UpdateOrderStatus
from orders.stores import get_store_directory

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def create_order(body: CreateOrderRequest, caller: Caller = Depends(current_caller)) -> OrderResponse:
    placement = OrderPlacement(
        config=get_config(),
        catalog=get_catalog(),
        stores=get_store_directory(),
    )
    order = placement.place(body.to_draft(), buyer=caller)
    return OrderResponse.from_order(order)


@order_router.get("", response_model=OrderListResponse)
def list_my_orders(
    status: str | None = None,
    store_id: str | None = Query(default=None, alias="storeId"),
    from_date: datetime | None = Query(default=None, alias="fromDate"),
    to_date: datetime | None = Query(default=None, alias="toDate"),
    page: int = 1,
    limit: int = 10,
    caller: Caller = Depends(current_caller),
) -> OrderListResponse:
    result = list_orders(
        actor_for(caller),
        OrderFilters(
            status=status,
            store_id=store_id,
            from_date=from_date,
            to_date=to_date,
            page=page,
            limit=limit,
        ),
    )
    return OrderListResponse(
        count=len(result.orders),
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.page,
        orders=[OrderResponse.from_order(order) for order in result.orders],
    )


@order_router.get("/statistics", response_model=OrderStatisticsResponse)
def get_statistics(
    store_id: str | None = Query(default=None, alias="storeId"),
    caller: Caller = Depends(current_caller),
) -> OrderStatisticsResponse:
    return OrderStatisticsResponse(**order_statistics(actor_for(caller), store_id=store_id))


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order_details(order_id: str, caller: Caller = Depends(current_caller)) -> OrderResponse:
    return OrderResponse.from_order(get_order(order_id, actor_for(caller)))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    caller: Caller = Depends(current_caller),
) -> OrderResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        note=body.note,
        cancellation_reason=body.cancellation_reason,
        return_reason=body.return_reason,
        expected_status=body.expected_status,
        actor_role=caller.role,
        actor_id=caller.id,
        actor_store_id=caller.store_id,
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(current_domain.repository_for(Order).get(order_id))
