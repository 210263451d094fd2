"""
Order service.

Orders belong to a user profile through `userId_c`. Reads of a single order
check that ownership and answer "not found" for anyone else's order.
"""
import json
import logging
import time
from typing import Any, Dict, List

import store
import user_service
from convert import load_json, lookup_id, to_float
from errors import ClientUnavailableError, NotAuthenticatedError, NotFoundError, describe_error
from record_client import get_apper_client, unwrap_result
from record_query import equal_to, field_list, order_by
from schemas import Order, OrderCreate

logger = logging.getLogger(__name__)

TABLE = "order_c"
INITIAL_STATUS = "Processing"

ORDER_FIELDS = [
    "Id",
    "Name",
    "orderNumber_c",
    "items_c",
    "subtotal_c",
    "shipping_c",
    "tax_c",
    "total_c",
    "shippingAddress_c",
    "status_c",
    "userId_c",
    "CreatedOn",
]


def to_order(record: Dict[str, Any]) -> Order:
    return Order(
        id=record["Id"],
        user_id=lookup_id(record.get("userId_c")),
        order_number=record.get("orderNumber_c"),
        items=load_json(record.get("items_c"), []),
        subtotal=to_float(record.get("subtotal_c")),
        shipping=to_float(record.get("shipping_c")),
        tax=to_float(record.get("tax_c")),
        total=to_float(record.get("total_c")),
        shipping_address=load_json(record.get("shippingAddress_c"), {}),
        status=record.get("status_c"),
        created_at=record.get("CreatedOn"),
    )


def _require_user() -> None:
    if store.get_state().user is None:
        raise NotAuthenticatedError("User not authenticated")


def create_order(order: OrderCreate) -> Order:
    try:
        client = get_apper_client()
        if client is None:
            raise ClientUnavailableError("Record client not available")
        _require_user()

        profile = user_service.get_profile()
        stamp = str(int(time.time() * 1000))

        params = {
            "records": [{
                "Name": f"Order {stamp}",
                "orderNumber_c": f"VO{stamp[-8:]}",
                "items_c": json.dumps(order.items),
                "subtotal_c": float(order.subtotal),
                "shipping_c": float(order.shipping),
                "tax_c": float(order.tax),
                "total_c": float(order.total),
                "shippingAddress_c": json.dumps(
                    order.shipping_address.model_dump(exclude_none=True, exclude={"is_default"})
                ),
                "status_c": INITIAL_STATUS,
                "userId_c": profile.id,
            }]
        }
        response = client.create_record(TABLE, params)
        created = unwrap_result(response, "Failed to create order", "create order")
        return to_order(created)
    except Exception as e:
        logger.error("Error creating order: %s", describe_error(e))
        raise


def get_user_orders() -> List[Order]:
    """Newest first. Returns [] on any failure."""
    try:
        client = get_apper_client()
        if client is None:
            raise ClientUnavailableError("Record client not available")
        _require_user()

        profile = user_service.get_profile()
        params = {
            "fields": field_list(ORDER_FIELDS),
            "where": equal_to("userId_c", profile.id),
            "orderBy": order_by("CreatedOn", "DESC"),
        }
        response = client.fetch_records(TABLE, params)

        if not response.get("success"):
            logger.error(response.get("message"))
            return []

        return [to_order(r) for r in response.get("data") or []]
    except Exception as e:
        logger.error("Error fetching user orders: %s", describe_error(e))
        return []


def get_order_by_id(order_id: Any) -> Order:
    try:
        client = get_apper_client()
        if client is None:
            raise ClientUnavailableError("Record client not available")
        _require_user()

        response = client.get_record_by_id(TABLE, int(order_id), {"fields": field_list(ORDER_FIELDS)})
        record = response.get("data")
        if not record:
            raise NotFoundError("Order not found")

        profile = user_service.get_profile()
        if str(lookup_id(record.get("userId_c"))) != str(profile.id):
            raise NotFoundError("Order not found")

        return to_order(record)
    except Exception as e:
        logger.error("Error fetching order %s: %s", order_id, describe_error(e))
        raise
