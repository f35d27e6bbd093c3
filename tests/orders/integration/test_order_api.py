"""Integration tests for the Orders API via TestClient."""

import inspect

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from orders.api import install_error_handlers, order_router
from orders.order.order import Order
from protean import current_domain


@pytest.fixture()
def client(config, catalog, stores, tokens):
    app = FastAPI()
    app.include_router(order_router)
    install_error_handlers(app)
    return TestClient(app)


def _auth(token="user-token"):
    return {"Authorization": f"Bearer {token}"}


def _order_body(**overrides):
    body = {
        "items": [{"productId": "prod-labubu", "quantity": 2}],
        "storeId": "store-001",
        "shippingAddress": {
            "fullName": "An Nguyen",
            "phoneNumber": "0901234567",
            "streetAddress": "12 Le Loi",
            "city": "Ho Chi Minh City",
            "postalCode": "700000",
            "country": "Vietnam",
        },
        "paymentMethod": {"type": "cod"},
    }
    body.update(overrides)
    return body


def _create_order(client, token="user-token", **overrides):
    response = client.post("/orders", json=_order_body(**overrides), headers=_auth(token))
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateOrder:
    def test_creates_order(self, client, catalog):
        data = _create_order(client)

        assert data["orderNumber"].startswith("BB")
        assert data["status"] == "processing"
        assert data["paymentStatus"] == "pending"
        assert data["user"] == {"userId": "user-001", "name": "An Nguyen", "email": "an.nguyen@example.com"}
        assert data["store"] == {"storeId": "store-001", "name": "Lucky Box Store"}
        assert data["subtotal"] == 500000.0
        assert data["shippingFee"] == 30000.0
        assert data["discount"] == 0.0
        assert data["total"] == 530000.0
        assert data["billingAddress"]["streetAddress"] == "12 Le Loi"
        assert data["statusHistory"][0]["note"] == "Order created"
        assert catalog.stock_of("prod-labubu") == 8

    def test_item_snapshot(self, client):
        data = _create_order(
            client,
            items=[
                {
                    "productId": "prod-molly",
                    "variantId": "var-red",
                    "quantity": 1,
                    "blindboxItem": {"name": "Zimomo", "rarity": "secret"},
                }
            ],
        )
        item = data["items"][0]
        assert item["price"] == 200000.0
        assert item["subtotal"] == 200000.0
        assert item["product"]["variant"] == {"variantId": "var-red", "name": "Red", "color": "red", "size": None}
        assert item["product"]["blindboxItem"]["rarity"] == "secret"

    def test_requires_token(self, client):
        response = client.post("/orders", json=_order_body())
        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "Unauthorized"

    def test_rejects_unknown_token(self, client):
        response = client.post("/orders", json=_order_body(), headers=_auth("forged"))
        assert response.status_code == 401

    def test_empty_items(self, client):
        response = client.post("/orders", json=_order_body(items=[]), headers=_auth())
        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "BadRequest"
        assert response.json()["error"]["identifier"] == "items"

    def test_zero_quantity_is_rejected_by_schema(self, client):
        body = _order_body(items=[{"productId": "prod-labubu", "quantity": 0}])
        response = client.post("/orders", json=body, headers=_auth())
        assert response.status_code == 400
        assert response.json()["error"]["identifier"] == "items.0.quantity"

    def test_invalid_item(self, client):
        body = _order_body(items=[{"productId": "prod-labubu", "quantity": 50}])
        response = client.post("/orders", json=body, headers=_auth())
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["kind"] == "InvalidItem"
        assert error["identifier"] == "prod-labubu"

    def test_unknown_store(self, client):
        response = client.post("/orders", json=_order_body(storeId="store-404"), headers=_auth())
        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "NotFound"

    def test_stock_conflict(self, client, catalog):
        catalog.fail_adjustments_for("prod-labubu")
        response = client.post("/orders", json=_order_body(), headers=_auth())

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["kind"] == "StockConflict"
        assert error["details"]["unreconciled"] == []
        order = current_domain.repository_for(Order).get(error["details"]["order_id"])
        assert order.status == "cancelled"


class TestUpdateStatus:
    def test_seller_confirms(self, client):
        order = _create_order(client)
        response = client.put(
            f"/orders/{order['id']}/status",
            json={"status": "confirmed", "note": "Packed"},
            headers=_auth("seller-token"),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["statusHistory"][-1] == {
            "status": "confirmed",
            "note": "Packed",
            "changedBy": "seller",
            "timestamp": data["statusHistory"][-1]["timestamp"],
        }

    def test_buyer_cancels(self, client):
        order = _create_order(client)
        response = client.put(
            f"/orders/{order['id']}/status",
            json={"status": "cancelled", "cancellationReason": "Ordered twice"},
            headers=_auth(),
        )
        assert response.status_code == 200
        assert response.json()["cancellationReason"] == "Ordered twice"
        assert response.json()["cancelledBy"] == "user"

    def test_buyer_cannot_confirm(self, client):
        order = _create_order(client)
        response = client.put(f"/orders/{order['id']}/status", json={"status": "confirmed"}, headers=_auth())
        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "Forbidden"

    def test_invalid_transition(self, client):
        order = _create_order(client)
        response = client.put(
            f"/orders/{order['id']}/status",
            json={"status": "delivered"},
            headers=_auth("admin-token"),
        )
        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "InvalidTransition"

    def test_stale_expected_status(self, client):
        order = _create_order(client)
        client.put(f"/orders/{order['id']}/status", json={"status": "confirmed"}, headers=_auth("seller-token"))
        response = client.put(
            f"/orders/{order['id']}/status",
            json={"status": "cancelled", "expectedStatus": "processing"},
            headers=_auth("admin-token"),
        )
        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "Conflict"

    def test_unknown_order(self, client):
        response = client.put("/orders/nope/status", json={"status": "confirmed"}, headers=_auth("admin-token"))
        assert response.status_code == 404


class TestReadOrders:
    def test_get_own_order(self, client):
        order = _create_order(client)
        response = client.get(f"/orders/{order['id']}", headers=_auth())
        assert response.status_code == 200
        assert response.json()["orderNumber"] == order["orderNumber"]

    def test_other_buyer_is_forbidden(self, client):
        order = _create_order(client)
        response = client.get(f"/orders/{order['id']}", headers=_auth("other-user-token"))
        assert response.status_code == 403

    def test_list_orders_envelope(self, client):
        _create_order(client)
        _create_order(client)
        _create_order(client, token="other-user-token")

        response = client.get("/orders", params={"limit": 1}, headers=_auth())
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["total"] == 2
        assert data["totalPages"] == 2
        assert data["currentPage"] == 1

    def test_seller_lists_store_orders(self, client):
        _create_order(client)
        _create_order(client, storeId="store-002")

        data = client.get("/orders", headers=_auth("seller-token")).json()
        assert data["total"] == 1
        assert data["orders"][0]["store"]["storeId"] == "store-001"

    def test_filter_by_status(self, client):
        order = _create_order(client)
        _create_order(client)
        client.put(f"/orders/{order['id']}/status", json={"status": "cancelled"}, headers=_auth())

        data = client.get("/orders", params={"status": "cancelled"}, headers=_auth("admin-token")).json()
        assert data["total"] == 1
        assert data["orders"][0]["id"] == order["id"]

    def test_statistics(self, client):
        _create_order(client)
        response = client.get("/orders/statistics", headers=_auth("admin-token"))
        assert response.status_code == 200
        data = response.json()
        assert data["totalOrders"] == 1
        assert data["ordersByStatus"] == [{"status": "processing", "count": 1, "revenue": 530000.0}]
        assert data["dailyRevenue"][0]["revenue"] == 530000.0
        assert data["dailyRevenue"][0]["orders"] == 1

    def test_statistics_forbidden_for_buyers(self, client):
        response = client.get("/orders/statistics", headers=_auth())
        assert response.status_code == 403


class TestErrorHandling:
    def test_unexpected_errors_are_hidden(self, config, stores, tokens):
        from orders.catalog import set_catalog
        from orders.catalog.fake_adapter import FakeCatalog

        class BrokenCatalog(FakeCatalog):
            def fetch_product(self, product_id):
                raise RuntimeError("disk on fire")

        set_catalog(BrokenCatalog())
        app = FastAPI()
        app.include_router(order_router)
        install_error_handlers(app)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/orders", json=_order_body(), headers=_auth())
        assert response.status_code == 500
        assert response.json() == {"error": {"kind": "Internal", "message": "Internal server error", "identifier": None}}


class TestRouteExecution:
    def test_routes_run_in_threadpool(self):
        # Collaborator calls block, so no route may run on the event loop.
        for route in order_router.routes:
            assert not inspect.iscoroutinefunction(route.endpoint), route.path

    def test_get_is_repeatable(self, client):
        order = _create_order(client)

        first = client.get(f"/orders/{order['id']}", headers=_auth())
        second = client.get(f"/orders/{order['id']}", headers=_auth())

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert second.json()["updatedAt"] == first.json()["updatedAt"]
        assert len(second.json()["statusHistory"]) == 1
