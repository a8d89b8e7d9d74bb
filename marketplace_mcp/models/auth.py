"""Authentication models: user, tokens and role-specific signup requests"""

import re
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Type

from ..protocol.errors import ValidationError


@dataclass
class User:
    """Authenticated user as kept in application state"""
    id: str
    email: str
    role: str = "buyer"  # buyer, seller, driver, admin
    display_name: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    company: str = ""
    address: str = ""
    is_verified: bool = False
    auth_type: Optional[str] = None
    created_at: str = ""

    @classmethod
    def from_api(cls, profile: Dict[str, Any], verified: Optional[bool] = None) -> "User":
        """Build a user from an ``/auth/me`` or OTP verification profile"""
        first_name = profile.get("firstName") or ""
        last_name = profile.get("lastName") or ""
        display_name = (
            profile.get("displayName")
            or f"{first_name} {last_name}".strip()
            or profile.get("email", "")
        )
        is_verified = verified if verified is not None else bool(
            profile.get("isVerified", profile.get("isEmailVerified", False))
        )
        return cls(
            id=str(profile.get("id") or profile.get("_id") or ""),
            email=profile.get("email", ""),
            role=profile.get("role") or profile.get("accountType") or "buyer",
            display_name=display_name,
            first_name=first_name,
            last_name=last_name,
            phone=profile.get("phone") or "",
            company=profile.get("businessName") or "",
            address=profile.get("businessAddress") or "",
            is_verified=is_verified,
            auth_type=profile.get("authType"),
            created_at=profile.get("createdAt") or datetime.now(timezone.utc).isoformat()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "displayName": self.display_name,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "company": self.company,
            "address": self.address,
            "isVerified": self.is_verified,
            "authType": self.auth_type,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data.get("id", ""),
            email=data.get("email", ""),
            role=data.get("role", "buyer"),
            display_name=data.get("displayName", ""),
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            phone=data.get("phone", ""),
            company=data.get("company", ""),
            address=data.get("address", ""),
            is_verified=bool(data.get("isVerified", False)),
            auth_type=data.get("authType"),
            created_at=data.get("createdAt", "")
        )


@dataclass
class AuthTokens:
    access_token: str
    refresh_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["AuthTokens"]:
        """Accept both camelCase and snake_case token keys"""
        if not data:
            return None
        access_token = data.get("accessToken") or data.get("access_token")
        refresh_token = data.get("refreshToken") or data.get("refresh_token")
        if not access_token:
            return None
        return cls(access_token=access_token, refresh_token=refresh_token)


def digits_only(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


@dataclass
class SignupRequest:
    """Fields shared by every signup variant"""
    role: ClassVar[str] = ""
    required_fields: ClassVar[List[str]] = ["email", "password", "first_name", "last_name"]

    email: str
    password: str
    first_name: str
    last_name: str

    def validate(self) -> List[str]:
        """Return the names of required fields that are blank"""
        return [name for name in self.required_fields if not str(getattr(self, name) or "").strip()]

    def ensure_valid(self):
        missing = self.validate()
        if missing:
            raise ValidationError(
                f"Missing required {self.role} signup fields: {', '.join(missing)}",
                {"missing": missing, "role": self.role}
            )

    def to_payload(self) -> Dict[str, Any]:
        """Body for ``POST /auth/register``"""
        return {
            "email": self.email.strip(),
            "password": self.password,
            "firstName": self.first_name.strip(),
            "lastName": self.last_name.strip(),
            "accountType": self.role,
            "role": self.role,
            "termsAccepted": True,
        }

    def google_completion_payload(self, user_id: str) -> Dict[str, Any]:
        """Body for ``POST /auth/complete-google-signup``"""
        return {"userId": user_id, "role": self.role}


@dataclass
class BuyerSignup(SignupRequest):
    role: ClassVar[str] = "buyer"

    phone: str = ""

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if self.phone:
            payload["phone"] = digits_only(self.phone)
        return payload


@dataclass
class SellerSignup(SignupRequest):
    role: ClassVar[str] = "seller"
    required_fields: ClassVar[List[str]] = SignupRequest.required_fields + [
        "business_name", "business_address", "phone", "ein_number", "sales_tax_id"
    ]

    business_name: str = ""
    business_address: str = ""
    phone: str = ""
    cell_phone: str = ""
    ein_number: str = ""
    sales_tax_id: str = ""
    local_delivery: bool = False

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload.update({
            "businessName": self.business_name.strip(),
            "businessAddress": self.business_address.strip(),
            "phone": digits_only(self.phone),
            "cellPhone": digits_only(self.cell_phone),
            "einNumber": self.ein_number,
            "salesTaxId": self.sales_tax_id,
            "localDelivery": self.local_delivery,
        })
        return payload

    def google_completion_payload(self, user_id: str) -> Dict[str, Any]:
        payload = super().google_completion_payload(user_id)
        payload.update({
            "businessName": self.business_name,
            "businessAddress": self.business_address,
            "phone": digits_only(self.phone),
            "cellPhone": digits_only(self.cell_phone),
            "einNumber": self.ein_number,
            "localDelivery": self.local_delivery,
            "salesTaxId": self.sales_tax_id or "",
        })
        return payload


@dataclass
class DriverSignup(SignupRequest):
    role: ClassVar[str] = "driver"
    required_fields: ClassVar[List[str]] = SignupRequest.required_fields + ["phone"]

    phone: str = ""

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["phone"] = digits_only(self.phone)
        return payload

    def google_completion_payload(self, user_id: str) -> Dict[str, Any]:
        payload = super().google_completion_payload(user_id)
        payload["phone"] = digits_only(self.phone)
        return payload


SIGNUP_VARIANTS: Dict[str, Type[SignupRequest]] = {
    BuyerSignup.role: BuyerSignup,
    SellerSignup.role: SellerSignup,
    DriverSignup.role: DriverSignup,
}

_CAMEL_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "businessName": "business_name",
    "businessAddress": "business_address",
    "cellPhone": "cell_phone",
    "einNumber": "ein_number",
    "salesTaxId": "sales_tax_id",
    "localDelivery": "local_delivery",
}


def signup_from_dict(data: Dict[str, Any]) -> SignupRequest:
    """Select the signup variant named by the ``role`` discriminator.

    ``accountType`` is accepted as an alias of ``role``. The form value
    ``localDelivery: "yes"`` is converted to a boolean.
    """
    role = (data.get("role") or data.get("accountType") or "").lower()
    variant = SIGNUP_VARIANTS.get(role)
    if variant is None:
        raise ValidationError(
            f"Unknown signup role '{role}'. Expected one of: {', '.join(SIGNUP_VARIANTS)}",
            {"role": role}
        )

    accepted = {f.name for f in fields(variant)}
    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        name = _CAMEL_FIELDS.get(key, key)
        if name in accepted:
            kwargs[name] = value

    if "local_delivery" in kwargs and isinstance(kwargs["local_delivery"], str):
        kwargs["local_delivery"] = kwargs["local_delivery"].lower() == "yes"

    for name in ("email", "password", "first_name", "last_name"):
        kwargs.setdefault(name, "")

    return variant(**kwargs)
