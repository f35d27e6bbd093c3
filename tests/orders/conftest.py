import pytest
from orders.catalog import set_catalog
from orders.catalog.fake_adapter import FakeCatalog
from orders.config import PipelineConfig, set_config
from orders.identity import set_token_verifier
from orders.identity.fake_adapter import FakeTokenVerifier
from orders.identity.port import Caller
from orders.order.placement import DraftOrder, OrderPlacement
from orders.order.pricing import RequestedItem
from orders.stores import set_store_directory
from orders.stores.fake_adapter import FakeStoreDirectory
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def orders_bed():
    from orders.domain import orders

    bed = DomainFixture(orders)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(orders_bed):
    with orders_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def config():
    config = PipelineConfig()
    set_config(config)
    return config


@pytest.fixture()
def catalog():
    catalog = FakeCatalog()
    catalog.add_product("prod-labubu", "Labubu Blind Box", price=250000.0, stock=10, image="labubu.jpg")
    catalog.add_product(
        "prod-molly",
        "Molly Series",
        price=180000.0,
        stock=5,
        variants=[
            {"id": "var-red", "name": "Red", "stock": 3, "price": 200000.0, "color": "red"},
            {"id": "var-blue", "name": "Blue", "stock": 2, "color": "blue"},
        ],
    )
    catalog.add_product("prod-retired", "Retired Box", price=99000.0, stock=4, is_active=False)
    set_catalog(catalog)
    return catalog


@pytest.fixture()
def stores():
    stores = FakeStoreDirectory()
    stores.add_store("store-001", "Lucky Box Store")
    stores.add_store("store-002", "Mystery Corner")
    set_store_directory(stores)
    return stores


@pytest.fixture()
def buyer():
    return Caller(id="user-001", role="user", email="an.nguyen@example.com", first_name="An", last_name="Nguyen")


@pytest.fixture()
def other_buyer():
    return Caller(id="user-002", role="user", email="binh.tran@example.com", first_name="Binh", last_name="Tran")


@pytest.fixture()
def seller():
    return Caller(id="seller-001", role="seller", email="shop@example.com", store_id="store-001")


@pytest.fixture()
def other_seller():
    return Caller(id="seller-002", role="seller", email="corner@example.com", store_id="store-002")


@pytest.fixture()
def admin():
    return Caller(id="admin-001", role="admin", email="admin@example.com")


@pytest.fixture()
def tokens(buyer, other_buyer, seller, other_seller, admin):
    verifier = FakeTokenVerifier()
    verifier.register("user-token", buyer)
    verifier.register("other-user-token", other_buyer)
    verifier.register("seller-token", seller)
    verifier.register("other-seller-token", other_seller)
    verifier.register("admin-token", admin)
    set_token_verifier(verifier)
    return verifier


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------
@pytest.fixture()
def shipping_address():
    return {
        "full_name": "An Nguyen",
        "phone_number": "0901234567",
        "street_address": "12 Le Loi",
        "city": "Ho Chi Minh City",
        "state": None,
        "postal_code": "700000",
        "country": "Vietnam",
    }


@pytest.fixture()
def make_draft(shipping_address):
    def _make_draft(*items, store_id="store-001", payment_type="cod", **overrides):
        requested = [
            item if isinstance(item, RequestedItem) else RequestedItem(**item)
            for item in (items or ({"product_id": "prod-labubu", "quantity": 1},))
        ]
        values = {
            "items": requested,
            "store_id": store_id,
            "shipping_address": dict(shipping_address),
            "payment_method": {"type": payment_type},
        }
        values.update(overrides)
        return DraftOrder(**values)

    return _make_draft


@pytest.fixture()
def placement(config, catalog, stores):
    return OrderPlacement(config=config, catalog=catalog, stores=stores)


@pytest.fixture()
def place_order(placement, make_draft, buyer):
    """Place an order for ``buyer`` (or another caller) and return it."""

    def _place_order(*items, caller=None, **overrides):
        return placement.place(make_draft(*items, **overrides), buyer=caller or buyer)

    return _place_order
