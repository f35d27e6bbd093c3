"""Order pipeline load test scenarios.

Buyers place orders and sometimes cancel them, sellers work through their
store's processing orders, and a contention user hammers a single scarce
product to exercise stock reservation and compensation. Bearer tokens for
each role come from the environment.
"""

import os
import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import PRODUCT_IDS, cancellation_data, order_data, shipping_address
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import OrderState, SellerState

USER_TOKEN = os.getenv("LOADTEST_USER_TOKEN", "user-token")
SELLER_TOKEN = os.getenv("LOADTEST_SELLER_TOKEN", "seller-token")
SCARCE_PRODUCT_ID = os.getenv("LOADTEST_SCARCE_PRODUCT_ID", PRODUCT_IDS[0])


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class BuyerJourney(SequentialTaskSet):
    """Place Order -> Read It -> List Own Orders -> Maybe Cancel."""

    def on_start(self):
        self.state = OrderState()

    @task
    def place_order(self):
        with self.client.post(
            "/orders",
            json=order_data(),
            headers=_auth(USER_TOKEN),
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                data = resp.json()
                self.state.order_id = data["id"]
                self.state.order_number = data["orderNumber"]
            elif resp.status_code == 409:
                # Losing a stock race is an expected outcome under load.
                self.state.stock_conflicts += 1
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Place order failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def read_order(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            headers=_auth(USER_TOKEN),
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Read order failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def list_orders(self):
        self.client.get(
            "/orders",
            params={"limit": 10},
            headers=_auth(USER_TOKEN),
            name="GET /orders",
        )

    @task
    def maybe_cancel(self):
        if random.random() < 0.3:
            with self.client.put(
                f"/orders/{self.state.order_id}/status",
                json=cancellation_data(),
                headers=_auth(USER_TOKEN),
                catch_response=True,
                name="PUT /orders/{id}/status",
            ) as resp:
                if resp.status_code == 200:
                    self.state.current_status = "cancelled"
                elif resp.status_code == 409:
                    resp.success()
                else:
                    resp.failure(f"Cancel failed: {resp.status_code} {extract_error_detail(resp)}")
        self.interrupt()


class SellerJourney(SequentialTaskSet):
    """List Processing Orders -> Confirm -> Ship -> Deliver."""

    def on_start(self):
        self.state = SellerState()

    @task
    def list_processing(self):
        with self.client.get(
            "/orders",
            params={"status": "processing", "limit": 5},
            headers=_auth(SELLER_TOKEN),
            catch_response=True,
            name="GET /orders?status=processing",
        ) as resp:
            if resp.status_code == 200:
                self.state.queue = [order["id"] for order in resp.json()["orders"]]
            else:
                resp.failure(f"List failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def advance_orders(self):
        for order_id in self.state.queue:
            for status, expected in (("confirmed", "processing"), ("shipping", "confirmed"), ("delivered", "shipping")):
                with self.client.put(
                    f"/orders/{order_id}/status",
                    json={"status": status, "expectedStatus": expected},
                    headers=_auth(SELLER_TOKEN),
                    catch_response=True,
                    name="PUT /orders/{id}/status",
                ) as resp:
                    if resp.status_code == 409:
                        # Another seller session got there first.
                        resp.success()
                        break
                    if resp.status_code != 200:
                        resp.failure(f"Advance failed: {resp.status_code} {extract_error_detail(resp)}")
                        break

    @task
    def statistics(self):
        self.client.get("/orders/statistics", headers=_auth(SELLER_TOKEN), name="GET /orders/statistics")
        self.interrupt()


class BuyerUser(HttpUser):
    tasks = [BuyerJourney]
    wait_time = between(1, 3)
    weight = 5


class SellerUser(HttpUser):
    tasks = [SellerJourney]
    wait_time = between(2, 5)
    weight = 1


class ScarceStockUser(HttpUser):
    """Many buyers racing for the same product."""

    wait_time = between(0.1, 0.5)
    weight = 1

    @task
    def grab_scarce_product(self):
        payload = order_data()
        payload["items"] = [{"productId": SCARCE_PRODUCT_ID, "quantity": 1}]
        payload["shippingAddress"] = shipping_address()
        with self.client.post(
            "/orders",
            json=payload,
            headers=_auth(USER_TOKEN),
            catch_response=True,
            name="POST /orders (scarce)",
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            elif resp.status_code == 400 and resp.json()["error"]["kind"] == "InvalidItem":
                # Sold out before pricing.
                resp.success()
            else:
                resp.failure(f"Scarce order failed: {resp.status_code} {extract_error_detail(resp)}")
