"""
Tests for the user profile service and its address book.
"""

import json

import pytest

import store
import user_service
from errors import NotAuthenticatedError, NotFoundError, ServiceError
from schemas import Address, CurrentUser, ProfileUpdate


class TestGetProfile:

    def test_creates_profile_on_first_access(self, records, signed_in):
        profile = user_service.get_profile()
        assert profile.name == "Ada Lovelace"
        assert profile.email == "ada@lovelace.io"
        assert profile.phone == ""
        assert profile.addresses == []

        again = user_service.get_profile()
        assert again.id == profile.id
        assert len(records.tables["user_profile_c"]) == 1

    def test_reads_existing_profile(self, records, signed_in):
        records.seed("user_profile_c", [{
            "Name": "Ada L",
            "email_c": "ada@lovelace.io",
            "firstName_c": "Ada",
            "addresses_c": json.dumps([{"id": 1, "city": "London", "is_default": True}]),
        }])
        profile = user_service.get_profile()
        assert profile.name == "Ada L"
        assert profile.addresses[0].city == "London"

    def test_requires_signed_in_user(self, records):
        with pytest.raises(NotAuthenticatedError, match="User not authenticated"):
            user_service.get_profile()

    def test_no_client_reads_as_unauthenticated(self, no_client, signed_in):
        with pytest.raises(NotAuthenticatedError):
            user_service.get_profile()

    def test_unsuccessful_fetch(self, stub_client, signed_in):
        stub_client({"success": False, "message": "denied"})
        with pytest.raises(NotFoundError, match="User not found"):
            user_service.get_profile()


class TestCreateProfile:

    def test_name_falls_back_to_email(self, records):
        profile = user_service.create_profile(CurrentUser(email_address="grace@cobol.org"))
        assert profile.name == "grace@cobol.org"
        assert records.tables["user_profile_c"][profile.id]["addresses_c"] == "[]"

    def test_failed_create(self, stub_client):
        stub_client({"success": True, "results": [{"success": False, "message": "dup"}]})
        with pytest.raises(ServiceError, match="Failed to create user profile"):
            user_service.create_profile(CurrentUser(email_address="grace@cobol.org"))


class TestUpdateProfile:

    def test_only_provided_fields_are_written(self, records, signed_in):
        profile = user_service.get_profile()
        updated = user_service.update_profile(ProfileUpdate(phone="555-0100"))
        assert updated.phone == "555-0100"
        assert updated.name == "Ada Lovelace"
        assert records.tables["user_profile_c"][profile.id]["firstName_c"] == "Ada"

    def test_name_recomputed_from_new_and_current(self, records, signed_in):
        user_service.get_profile()
        updated = user_service.update_profile(ProfileUpdate(first_name="Augusta"))
        assert updated.first_name == "Augusta"
        assert updated.last_name == "Lovelace"
        assert updated.name == "Augusta Lovelace"

    def test_requires_user(self, records):
        with pytest.raises(NotAuthenticatedError):
            user_service.update_profile(ProfileUpdate(phone="1"))


class TestAddresses:

    def test_first_address_is_default(self, records, signed_in):
        first = user_service.add_address(Address(full_name="Ada", city="London"))
        second = user_service.add_address(Address(full_name="Ada", city="Paris"))
        assert first.is_default is True
        assert second.is_default is False
        assert second.id != first.id

        stored = json.loads(records.tables["user_profile_c"][1]["addresses_c"])
        assert [a["city"] for a in stored] == ["London", "Paris"]
        assert [a.city for a in user_service.get_addresses()] == ["London", "Paris"]

    def test_extra_keys_are_kept(self, records, signed_in):
        user_service.add_address(Address(city="Oslo", label="Office"))
        assert user_service.get_addresses()[0].model_dump()["label"] == "Office"

    def test_removing_default_promotes_next(self, records, signed_in):
        first = user_service.add_address(Address(city="London"))
        user_service.add_address(Address(city="Paris"))
        remaining = user_service.remove_address(first.id)
        assert [(a.city, a.is_default) for a in remaining] == [("Paris", True)]

    def test_set_default(self, records, signed_in):
        user_service.add_address(Address(city="London"))
        second = user_service.add_address(Address(city="Paris"))
        addresses = user_service.set_default_address(second.id)
        assert [a.is_default for a in addresses] == [False, True]
        assert [a.is_default for a in user_service.get_addresses()] == [False, True]

    def test_unknown_address(self, records, signed_in):
        with pytest.raises(NotFoundError, match="Address not found"):
            user_service.remove_address(12345)

    def test_get_addresses_is_tolerant(self, records):
        assert store.get_state().user is None
        assert user_service.get_addresses() == []

    def test_storefront_address_format(self, records, signed_in):
        records.seed("user_profile_c", [{
            "Name": "Ada",
            "email_c": "ada@lovelace.io",
            "addresses_c": json.dumps([{"Id": 1700000000000, "city": "London", "isDefault": True}]),
        }])
        [london] = user_service.get_addresses()
        assert london.id == 1700000000000
        assert london.is_default is True
        assert "Id" not in london.model_dump()

        paris = user_service.add_address(Address(city="Paris"))
        assert paris.is_default is False
        user_service.set_default_address(paris.id)

        stored = json.loads(records.tables["user_profile_c"][1]["addresses_c"])
        assert [(a["Id"], a["isDefault"]) for a in stored] == [(1700000000000, False), (paris.id, True)]
        assert all("id" not in a and "is_default" not in a for a in stored)

        remaining = user_service.remove_address(1700000000000)
        assert [(a.city, a.is_default) for a in remaining] == [("Paris", True)]
