"""
Tests for the role-discriminated signup requests.

Run with: python -m pytest tests/ -v
"""

import pytest

from marketplace_mcp.models.auth import (
    BuyerSignup,
    DriverSignup,
    SellerSignup,
    User,
    signup_from_dict
)
from marketplace_mcp.protocol.errors import ValidationError

BASE = {"email": "a@example.com", "password": "pw", "firstName": "Ada", "lastName": "Lee"}


class TestVariantSelection:
    """The role field picks the variant."""

    @pytest.mark.parametrize("role, variant", [
        ("buyer", BuyerSignup),
        ("seller", SellerSignup),
        ("driver", DriverSignup),
        ("SELLER", SellerSignup),
    ])
    def test_role(self, role, variant):
        assert isinstance(signup_from_dict({**BASE, "role": role}), variant)

    def test_account_type_alias(self):
        assert isinstance(signup_from_dict({**BASE, "accountType": "driver"}), DriverSignup)

    def test_unknown_role(self):
        with pytest.raises(ValidationError) as exc_info:
            signup_from_dict({**BASE, "role": "admin"})

        assert "admin" in exc_info.value.message

    def test_fields_for_other_roles_are_dropped(self):
        request = signup_from_dict({**BASE, "role": "buyer", "businessName": "Shop"})

        assert not hasattr(request, "business_name")


class TestValidation:
    """Each variant has its own required fields."""

    def test_buyer_phone_is_optional(self):
        assert signup_from_dict({**BASE, "role": "buyer"}).validate() == []

    def test_driver_requires_phone(self):
        assert signup_from_dict({**BASE, "role": "driver"}).validate() == ["phone"]

    def test_seller_requires_business_details(self):
        missing = signup_from_dict({**BASE, "role": "seller", "businessName": "Shop"}).validate()

        assert missing == ["business_address", "phone", "ein_number", "sales_tax_id"]

    def test_blank_strings_count_as_missing(self):
        request = signup_from_dict({**BASE, "role": "buyer", "firstName": "   "})

        with pytest.raises(ValidationError):
            request.ensure_valid()


class TestPayloads:
    """Request bodies sent to the backend."""

    def test_seller_register_payload(self):
        request = signup_from_dict({
            **BASE,
            "role": "seller",
            "businessName": " Ada's Goods ",
            "businessAddress": "1 Main St",
            "phone": "555-010-0200",
            "cellPhone": "",
            "einNumber": "12-3456789",
            "salesTaxId": "TX-1",
            "localDelivery": "yes",
        })

        payload = request.to_payload()

        assert payload["role"] == payload["accountType"] == "seller"
        assert payload["businessName"] == "Ada's Goods"
        assert payload["phone"] == "5550100200"
        assert payload["localDelivery"] is True
        assert payload["termsAccepted"] is True

    def test_local_delivery_no(self):
        request = signup_from_dict({**BASE, "role": "seller", "localDelivery": "no"})

        assert request.local_delivery is False

    def test_google_completion_payload(self):
        request = DriverSignup(email="", password="", first_name="", last_name="", phone="(555) 123-4567")

        assert request.google_completion_payload("user-1") == {
            "userId": "user-1",
            "role": "driver",
            "phone": "5551234567",
        }


class TestUserProfile:

    def test_display_name_falls_back_to_names_then_email(self):
        assert User.from_api({"email": "a@example.com", "firstName": "Ada", "lastName": "Lee"}).display_name \
            == "Ada Lee"
        assert User.from_api({"email": "a@example.com"}).display_name == "a@example.com"

    def test_round_trip_through_storage_dict(self):
        user = User.from_api({"_id": "u1", "email": "a@example.com", "accountType": "driver",
                              "isVerified": True})

        restored = User.from_dict(user.to_dict())

        assert restored == user
