"""Shared BDD fixtures and step definitions for the Orders domain."""

import pytest
from orders.errors import Forbidden, InvalidTransition
from orders.order.order import Order
from orders.order.status import UpdateOrderStatus
from protean import current_domain
from pytest_bdd import given, parsers, then, when


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the error a status change ran into."""
    return {"exc": None}


@pytest.fixture()
def callers(buyer, seller, other_seller, admin):
    return {
        "buyer": buyer,
        "seller": seller,
        "other seller": other_seller,
        "admin": admin,
    }


def _move(order, caller, status):
    command = UpdateOrderStatus(
        order_id=str(order.id),
        status=status,
        actor_role=caller.role,
        actor_id=caller.id,
        actor_store_id=caller.store_id,
    )
    current_domain.process(command, asynchronous=False)


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the buyer has placed an order", target_fixture="order")
def buyer_placed_order(place_order):
    return place_order()


@given(parsers.cfparse('the {actor} has moved the order to "{status}"'), target_fixture="order")
def order_already_moved(order, callers, actor, status):
    _move(order, callers[actor], status)
    return _reload(order)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the {actor} moves the order to "{status}"'), target_fixture="order")
def move_order(order, callers, error, actor, status):
    try:
        _move(order, callers[actor], status)
    except (Forbidden, InvalidTransition) as exc:
        error["exc"] = exc
    return _reload(order)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert _reload(order).status == status


@then(parsers.cfparse('the order was cancelled by "{actor}"'))
def order_cancelled_by(order, actor):
    stored = _reload(order)
    assert stored.status == "cancelled"
    assert stored.cancelled_by == actor


@then(parsers.cfparse('the order history reads "{statuses}"'))
def order_history_reads(order, statuses):
    history = [entry.status for entry in _reload(order).history]
    assert history == [status.strip() for status in statuses.split(",")]


@then("the change is forbidden")
def change_forbidden(error):
    assert isinstance(error["exc"], Forbidden)


@then("the change is rejected as an invalid transition")
def change_is_invalid_transition(error):
    assert isinstance(error["exc"], InvalidTransition)
