"""
Tests for the product read service.
"""

import product_service
from product_service import to_product


class TestMapping:

    def test_reshapes_record(self):
        product = to_product({
            "Id": 4,
            "Name": "Boot",
            "price_c": "9.99",
            "images_c": "a.jpg\n\n  \nb.jpg ",
            "stockCount_c": "12.7",
            "inStock_c": True,
        })
        assert product.id == 4
        assert product.name == "Boot"
        assert product.price == 9.99
        assert product.images == ["a.jpg", "b.jpg"]
        assert product.stock_count == 12
        assert product.in_stock is True

    def test_missing_values_default(self):
        product = to_product({"Id": 1})
        assert product.price == 0.0
        assert product.images == []
        assert product.sizes == []
        assert product.colors == []
        assert product.stock_count == 0
        assert product.in_stock is False
        assert product.featured is False
        assert product.trending is False

    def test_unparseable_numbers_default(self):
        product = to_product({"Id": 1, "price_c": "n/a", "stockCount_c": "lots"})
        assert product.price == 0.0
        assert product.stock_count == 0


class TestQueries:

    def test_get_all(self, products):
        assert [p.name for p in product_service.get_all()] == ["Leather Boot", "Linen Shirt", "Canvas Tote"]

    def test_get_by_id(self, products):
        product = product_service.get_by_id(str(products[0]["Id"]))
        assert product.name == "Leather Boot"
        assert product.price == 129.5
        assert product.sizes == ["40", "41", "42"]

    def test_get_by_id_missing(self, products):
        assert product_service.get_by_id(999) is None

    def test_get_by_category(self, products):
        assert [p.name for p in product_service.get_by_category("Shirts")] == ["Linen Shirt"]

    def test_featured_and_trending(self, products):
        assert [p.name for p in product_service.get_featured()] == ["Leather Boot"]
        assert [p.name for p in product_service.get_trending()] == ["Linen Shirt"]

    def test_search_matches_name_category_or_description(self, products):
        assert [p.name for p in product_service.search("boot")] == ["Leather Boot", "Canvas Tote"]
        assert [p.name for p in product_service.search("bags")] == ["Canvas Tote"]
        assert product_service.search("umbrella") == []

    def test_requests_all_product_fields(self, stub_client):
        client = stub_client({"success": True, "data": []})
        product_service.get_featured()
        _, table, params = client.calls[0]
        assert table == "product_c"
        assert [f["field"]["Name"] for f in params["fields"]] == product_service.PRODUCT_FIELDS
        assert params["where"] == [{"FieldName": "featured_c", "Operator": "EqualTo", "Values": [True]}]


class TestFailuresAreTolerated:

    def test_no_client(self, no_client):
        assert product_service.get_all() == []
        assert product_service.get_by_id(1) is None

    def test_unsuccessful_response(self, stub_client):
        stub_client({"success": False, "message": "nope"})
        assert product_service.search("boot") == []

    def test_client_exception(self, stub_client):
        stub_client(error=RuntimeError("connection reset"))
        assert product_service.get_trending() == []
        assert product_service.get_by_id(3) is None
