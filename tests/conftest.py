import pytest

import record_client
import store
from record_client import InMemoryRecordClient
from schemas import CurrentUser


class StubClient:
    """Record client that answers every call with one canned response or error."""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else {"success": False, "message": "backend down"}
        self.error = error
        self.calls = []

    def _answer(self, name, *args):
        self.calls.append((name,) + args)
        if self.error is not None:
            raise self.error
        return self.response

    def fetch_records(self, table_name, params=None):
        return self._answer("fetch_records", table_name, params)

    def get_record_by_id(self, table_name, record_id, params=None):
        return self._answer("get_record_by_id", table_name, record_id, params)

    def create_record(self, table_name, params):
        return self._answer("create_record", table_name, params)

    def update_record(self, table_name, params):
        return self._answer("update_record", table_name, params)


@pytest.fixture
def records():
    client = InMemoryRecordClient()
    record_client.set_apper_client(client)
    yield client
    record_client.set_apper_client(None)


@pytest.fixture
def stub_client():
    """Install a StubClient built from the given response or error."""
    def install(response=None, error=None):
        client = StubClient(response=response, error=error)
        record_client.set_apper_client(client)
        return client
    yield install
    record_client.set_apper_client(None)


@pytest.fixture
def no_client(monkeypatch):
    monkeypatch.setattr(record_client, "_build_client", lambda: None)
    record_client.set_apper_client(None)
    yield
    record_client.set_apper_client(None)


@pytest.fixture
def user():
    return CurrentUser(email_address="ada@lovelace.io", first_name="Ada", last_name="Lovelace")


@pytest.fixture
def signed_in(user):
    with store.use_user(user):
        yield user


@pytest.fixture
def products(records):
    return records.seed("product_c", [
        {
            "Name": "Leather Boot",
            "description_c": "Waterproof ankle boot",
            "price_c": "129.50",
            "category_c": "Shoes",
            "subcategory_c": "Boots",
            "images_c": "boot-1.jpg\nboot-2.jpg\n",
            "sizes_c": "40\n41\n42",
            "colors_c": "Brown",
            "inStock_c": True,
            "stockCount_c": "12",
            "featured_c": True,
            "trending_c": False,
        },
        {
            "Name": "Linen Shirt",
            "description_c": "Light summer shirt",
            "price_c": 45,
            "category_c": "Shirts",
            "inStock_c": True,
            "stockCount_c": 3,
            "featured_c": False,
            "trending_c": True,
        },
        {
            "Name": "Canvas Tote",
            "description_c": "Everyday bag with boot-cut pocket",
            "price_c": None,
            "category_c": "Bags",
        },
    ])
