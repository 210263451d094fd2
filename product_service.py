"""
Product read service.

Reads never raise: failures are logged and an empty result is returned.
"""
import logging
from typing import Any, Dict, List, Optional

from convert import split_lines, to_float, to_int
from errors import describe_error
from record_client import get_apper_client
from record_query import any_contains, equal_to, field_list
from schemas import Product

logger = logging.getLogger(__name__)

TABLE = "product_c"

PRODUCT_FIELDS = [
    "Id",
    "Name",
    "description_c",
    "price_c",
    "category_c",
    "subcategory_c",
    "images_c",
    "sizes_c",
    "colors_c",
    "inStock_c",
    "stockCount_c",
    "featured_c",
    "trending_c",
]

SEARCH_FIELDS = ["Name", "category_c", "description_c"]


def to_product(record: Dict[str, Any]) -> Product:
    return Product(
        id=record["Id"],
        name=record.get("Name"),
        description=record.get("description_c"),
        price=to_float(record.get("price_c")),
        category=record.get("category_c"),
        subcategory=record.get("subcategory_c"),
        images=split_lines(record.get("images_c")),
        sizes=split_lines(record.get("sizes_c")),
        colors=split_lines(record.get("colors_c")),
        in_stock=bool(record.get("inStock_c")),
        stock_count=to_int(record.get("stockCount_c")),
        featured=bool(record.get("featured_c")),
        trending=bool(record.get("trending_c")),
    )


def _fetch(label: str, **query: Any) -> List[Product]:
    try:
        client = get_apper_client()
        if client is None:
            logger.error("Record client not available")
            return []

        params = {"fields": field_list(PRODUCT_FIELDS), **query}
        response = client.fetch_records(TABLE, params)

        if not response.get("success"):
            logger.error(response.get("message"))
            return []

        return [to_product(r) for r in response.get("data") or []]
    except Exception as e:
        logger.error("Error fetching %s: %s", label, describe_error(e))
        return []


def get_all() -> List[Product]:
    return _fetch("products")


def get_by_id(product_id: Any) -> Optional[Product]:
    try:
        client = get_apper_client()
        if client is None:
            logger.error("Record client not available")
            return None

        response = client.get_record_by_id(TABLE, int(product_id), {"fields": field_list(PRODUCT_FIELDS)})
        if not response.get("data"):
            logger.info("Product %s not found", product_id)
            return None
        return to_product(response["data"])
    except Exception as e:
        logger.error("Error fetching product %s: %s", product_id, describe_error(e))
        return None


def get_by_category(category: str) -> List[Product]:
    return _fetch("products by category", where=equal_to("category_c", category))


def get_featured() -> List[Product]:
    return _fetch("featured products", where=equal_to("featured_c", True))


def get_trending() -> List[Product]:
    return _fetch("trending products", where=equal_to("trending_c", True))


def search(query: str) -> List[Product]:
    """Case-insensitive match on name, category or description."""
    return _fetch("product search", whereGroups=any_contains(SEARCH_FIELDS, query))
