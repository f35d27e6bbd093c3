"""Tests for UpdateOrderStatus processed through the domain."""

import pytest
from orders.errors import Conflict, Forbidden, InvalidTransition, NotFound
from orders.order.order import Order
from orders.order.status import UpdateOrderStatus
from protean import current_domain


def _update(order_id, status, caller, **extra):
    command = UpdateOrderStatus(
        order_id=str(order_id),
        status=status,
        actor_role=caller.role,
        actor_id=caller.id,
        actor_store_id=caller.store_id,
        **extra,
    )
    return current_domain.process(command, asynchronous=False)


def _stored(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestStatusUpdates:
    def test_seller_walks_order_to_delivered(self, place_order, seller):
        order = place_order()
        for status in ("confirmed", "shipping", "delivered"):
            _update(order.id, status, seller)

        stored = _stored(order.id)
        assert stored.status == "delivered"
        assert [entry.status for entry in stored.history] == ["processing", "confirmed", "shipping", "delivered"]

    def test_returns_order_id(self, place_order, seller):
        order = place_order()
        assert _update(order.id, "confirmed", seller) == str(order.id)

    def test_note_is_recorded(self, place_order, seller):
        order = place_order()
        _update(order.id, "confirmed", seller, note="Packed")
        assert _stored(order.id).history[-1].note == "Packed"

    def test_buyer_cancels_with_reason(self, place_order, buyer):
        order = place_order()
        _update(order.id, "cancelled", buyer, cancellation_reason="Ordered twice")

        stored = _stored(order.id)
        assert stored.status == "cancelled"
        assert stored.cancellation_reason == "Ordered twice"
        assert stored.cancelled_by == "user"

    def test_admin_records_return_reason(self, place_order, admin):
        order = place_order()
        for status in ("confirmed", "shipping", "delivered"):
            _update(order.id, status, admin)
        _update(order.id, "returned", admin, return_reason="Damaged box")
        assert _stored(order.id).return_reason == "Damaged box"

    def test_cancelling_does_not_restock(self, place_order, buyer, catalog):
        order = place_order()
        _update(order.id, "cancelled", buyer)
        assert catalog.stock_of("prod-labubu") == 9


class TestRejectedUpdates:
    def test_unknown_order(self, admin):
        with pytest.raises(NotFound):
            _update("missing-order", "confirmed", admin)

    def test_invalid_transition_leaves_order_unchanged(self, place_order, admin):
        order = place_order()
        with pytest.raises(InvalidTransition):
            _update(order.id, "delivered", admin)

        stored = _stored(order.id)
        assert stored.status == "processing"
        assert len(stored.history) == 1

    def test_foreign_seller(self, place_order, other_seller):
        order = place_order()
        with pytest.raises(Forbidden):
            _update(order.id, "confirmed", other_seller)

    def test_other_buyer(self, place_order, other_buyer):
        order = place_order()
        with pytest.raises(Forbidden):
            _update(order.id, "cancelled", other_buyer)

    def test_stale_expected_status(self, place_order, seller, admin):
        order = place_order()
        _update(order.id, "confirmed", seller)

        with pytest.raises(Conflict):
            _update(order.id, "cancelled", admin, expected_status="processing")
        assert _stored(order.id).status == "confirmed"

    def test_matching_expected_status(self, place_order, seller):
        order = place_order()
        _update(order.id, "confirmed", seller, expected_status="processing")
        assert _stored(order.id).status == "confirmed"
