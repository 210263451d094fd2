"""
User profile service.

Profiles live in `user_profile_c`, keyed by the signed-in user's email. The
address book is a JSON list stored in the profile's `addresses_c` field.
"""
import json
import logging
import time
from typing import Any, Dict, List, Optional

import store
from convert import load_json
from errors import (
    ClientUnavailableError,
    NotAuthenticatedError,
    NotFoundError,
    describe_error,
)
from record_client import get_apper_client, unwrap_result
from record_query import equal_to, field_list
from schemas import Address, CurrentUser, ProfileUpdate, UserProfile

logger = logging.getLogger(__name__)

TABLE = "user_profile_c"

PROFILE_FIELDS = [
    "Id",
    "Name",
    "email_c",
    "firstName_c",
    "lastName_c",
    "phone_c",
    "addresses_c",
    "CreatedOn",
]


def _to_addresses(raw: Any) -> List[Address]:
    return [Address.model_validate(a) for a in raw or [] if isinstance(a, dict)]


def to_profile(record: Dict[str, Any], fallback_addresses: Optional[List[Address]] = None) -> UserProfile:
    raw = load_json(record.get("addresses_c"), None)
    addresses = _to_addresses(raw) if raw is not None else list(fallback_addresses or [])
    return UserProfile(
        id=record["Id"],
        name=record.get("Name"),
        email=record.get("email_c"),
        first_name=record.get("firstName_c"),
        last_name=record.get("lastName_c"),
        phone=record.get("phone_c"),
        addresses=addresses,
        created_at=record.get("CreatedOn"),
    )


def _require_client():
    client = get_apper_client()
    if client is None:
        raise ClientUnavailableError("Record client not available")
    return client


def get_profile() -> UserProfile:
    """Return the signed-in user's profile, creating it on first access."""
    try:
        client = get_apper_client()
        if client is None:
            logger.error("Record client not available")
            raise NotAuthenticatedError("User not authenticated")

        current_user = store.get_state().user
        if current_user is None:
            raise NotAuthenticatedError("User not authenticated")

        params = {
            "fields": field_list(PROFILE_FIELDS),
            "where": equal_to("email_c", str(current_user.email_address)),
        }
        response = client.fetch_records(TABLE, params)

        if not response.get("success"):
            logger.error(response.get("message"))
            raise NotFoundError("User not found")

        rows = response.get("data") or []
        if not rows:
            return create_profile(current_user)
        return to_profile(rows[0])
    except Exception as e:
        logger.error("Error fetching user profile: %s", describe_error(e))
        raise


def create_profile(current_user: CurrentUser) -> UserProfile:
    try:
        client = _require_client()
        email = str(current_user.email_address)
        first_name = current_user.first_name or ""
        last_name = current_user.last_name or ""

        params = {
            "records": [{
                "Name": f"{first_name} {last_name}".strip() or email,
                "email_c": email,
                "firstName_c": first_name,
                "lastName_c": last_name,
                "phone_c": "",
                "addresses_c": "[]",
            }]
        }
        response = client.create_record(TABLE, params)
        created = unwrap_result(response, "Failed to create user profile", "create user profile")
        return to_profile({**created, "addresses_c": "[]"})
    except Exception as e:
        logger.error("Error creating user profile: %s", describe_error(e))
        raise


def update_profile(update: ProfileUpdate) -> UserProfile:
    """Write only the fields that were explicitly provided."""
    try:
        client = _require_client()
        if store.get_state().user is None:
            raise NotAuthenticatedError("User not authenticated")

        current = get_profile()
        provided = update.model_fields_set

        changes: Dict[str, Any] = {}
        if "first_name" in provided:
            changes["firstName_c"] = update.first_name
        if "last_name" in provided:
            changes["lastName_c"] = update.last_name
        if "phone" in provided:
            changes["phone_c"] = update.phone
        if update.first_name or update.last_name:
            first = update.first_name or current.first_name or ""
            last = update.last_name or current.last_name or ""
            changes["Name"] = f"{first} {last}".strip()

        response = client.update_record(TABLE, {"records": [{"Id": current.id, **changes}]})
        updated = unwrap_result(response, "Failed to update profile", "update user profile")
        return to_profile(updated, fallback_addresses=current.addresses)
    except Exception as e:
        logger.error("Error updating user profile: %s", describe_error(e))
        raise


# Address book

def get_addresses() -> List[Address]:
    try:
        return get_profile().addresses
    except Exception as e:
        logger.error("Error fetching addresses: %s", describe_error(e))
        return []


def _save_addresses(profile: UserProfile, addresses: List[Address], failure_message: str) -> None:
    client = _require_client()
    blob = json.dumps([a.to_stored() for a in addresses])
    response = client.update_record(TABLE, {"records": [{"Id": profile.id, "addresses_c": blob}]})
    unwrap_result(response, failure_message, "save addresses")


def add_address(address: Address) -> Address:
    """Append an address; the first one saved becomes the default."""
    try:
        profile = get_profile()
        addresses = list(profile.addresses)
        # Millisecond clock id, bumped past existing ids to stay unique.
        new_id = max([int(time.time() * 1000)] + [a.id + 1 for a in addresses if a.id is not None])
        new_address = address.model_copy(update={
            "id": new_id,
            "is_default": not addresses,
        })
        _save_addresses(profile, addresses + [new_address], "Failed to add address")
        return new_address
    except Exception as e:
        logger.error("Error adding address: %s", describe_error(e))
        raise


def _find(addresses: List[Address], address_id: Any) -> int:
    for index, address in enumerate(addresses):
        if address.id is not None and str(address.id) == str(address_id):
            return index
    raise NotFoundError("Address not found")


def remove_address(address_id: Any) -> List[Address]:
    try:
        profile = get_profile()
        addresses = list(profile.addresses)
        removed = addresses.pop(_find(addresses, address_id))
        if removed.is_default and addresses:
            addresses[0] = addresses[0].model_copy(update={"is_default": True})
        _save_addresses(profile, addresses, "Failed to remove address")
        return addresses
    except Exception as e:
        logger.error("Error removing address %s: %s", address_id, describe_error(e))
        raise


def set_default_address(address_id: Any) -> List[Address]:
    try:
        profile = get_profile()
        target = _find(profile.addresses, address_id)
        addresses = [
            a.model_copy(update={"is_default": i == target})
            for i, a in enumerate(profile.addresses)
        ]
        _save_addresses(profile, addresses, "Failed to update default address")
        return addresses
    except Exception as e:
        logger.error("Error setting default address %s: %s", address_id, describe_error(e))
        raise
