"""Faker-based data generators for Locust load test scenarios.

Payloads use the camelCase field names of the order API's request schemas.
Product and store ids must exist in the catalog and store services the
target deployment talks to, so they are read from the environment.
"""

import os
import random

from faker import Faker

fake = Faker("vi_VN")

PRODUCT_IDS = [pid for pid in os.getenv("LOADTEST_PRODUCT_IDS", "prod-labubu,prod-molly").split(",") if pid]
STORE_ID = os.getenv("LOADTEST_STORE_ID", "store-001")

PAYMENT_TYPES = ["cod", "card", "banking", "wallet"]


def shipping_address() -> dict:
    return {
        "fullName": fake.name()[:100],
        "phoneNumber": f"09{random.randint(10_000_000, 99_999_999)}",
        "streetAddress": fake.street_address()[:200],
        "city": fake.city()[:100],
        "postalCode": f"{random.randint(10, 99)}0000",
        "country": "Vietnam",
    }


def order_items(max_lines: int = 3) -> list[dict]:
    """One to ``max_lines`` lines for distinct products, one or two units each."""
    products = random.sample(PRODUCT_IDS, k=random.randint(1, min(max_lines, len(PRODUCT_IDS))))
    return [{"productId": product_id, "quantity": random.randint(1, 2)} for product_id in products]


def order_data(store_id: str = STORE_ID) -> dict:
    """CreateOrderRequest payload."""
    return {
        "items": order_items(),
        "storeId": store_id,
        "shippingAddress": shipping_address(),
        "paymentMethod": {"type": random.choice(PAYMENT_TYPES)},
        "notes": fake.sentence(nb_words=6) if random.random() < 0.3 else None,
    }


def cancellation_data() -> dict:
    return {
        "status": "cancelled",
        "cancellationReason": random.choice(["Ordered twice", "Changed my mind", "Found it cheaper"]),
        "expectedStatus": "processing",
    }
