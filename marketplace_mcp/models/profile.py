"""Profile and payment-management models: cards, bank accounts, CMS pages, uploads"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


CARD_PATTERNS = [
    ("visa", re.compile(r"^4")),
    ("mastercard", re.compile(r"^(5[1-5]|2[2-7])")),
    ("amex", re.compile(r"^3[47]")),
    ("discover", re.compile(r"^(6011|65|64[4-9])")),
    ("diners", re.compile(r"^(36|38|30[0-5])")),
    ("jcb", re.compile(r"^35")),
    ("unionpay", re.compile(r"^62")),
]


def validate_card_number(card_number: str) -> bool:
    """Luhn check over a 13-19 digit card number"""
    cleaned = re.sub(r"\s", "", card_number or "")
    if not re.fullmatch(r"\d{13,19}", cleaned):
        return False

    total = 0
    for index, char in enumerate(reversed(cleaned)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def detect_card_brand(card_number: str) -> str:
    cleaned = re.sub(r"\D", "", card_number or "")
    for brand, pattern in CARD_PATTERNS:
        if pattern.match(cleaned):
            return brand
    return "unknown"


def mask_card_number(card_number: str) -> str:
    cleaned = re.sub(r"\D", "", card_number or "")
    return f"**** **** **** {cleaned[-4:]}" if len(cleaned) >= 4 else cleaned


@dataclass
class Card:
    """Saved payment card (never holds the full number)"""
    id: str
    last4: str = ""
    brand: str = ""
    expiry_month: int = 0
    expiry_year: int = 0
    cardholder_name: str = ""
    is_default: bool = False
    payment_method_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.brand.title() or 'Card'} ending in {self.last4}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "last4": self.last4,
            "brand": self.brand,
            "expiryMonth": self.expiry_month,
            "expiryYear": self.expiry_year,
            "cardholderName": self.cardholder_name,
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            last4=str(data.get("last4", "")),
            brand=data.get("brand", ""),
            expiry_month=int(data.get("expiryMonth") or 0),
            expiry_year=int(data.get("expiryYear") or 0),
            cardholder_name=data.get("cardholderName", ""),
            is_default=bool(data.get("isDefault", False)),
            payment_method_id=data.get("paymentMethodId")
        )


class BankAccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CURRENT = "current"


@dataclass
class BankAccount:
    id: str
    account_holder_name: str
    bank_name: str
    account_number: str
    routing_number: str
    swift_code: str = ""
    account_type: BankAccountType = BankAccountType.CHECKING
    is_default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "accountHolderName": self.account_holder_name,
            "bankName": self.bank_name,
            "accountNumber": self.account_number,
            "routingNumber": self.routing_number,
            "swiftCode": self.swift_code,
            "accountType": self.account_type.value,
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BankAccount":
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            account_holder_name=data.get("accountHolderName", ""),
            bank_name=data.get("bankName", ""),
            account_number=data.get("accountNumber", ""),
            routing_number=data.get("routingNumber", ""),
            swift_code=data.get("swiftCode", ""),
            account_type=BankAccountType(data.get("accountType", "checking")),
            is_default=bool(data.get("isDefault", False))
        )


class ContentType(str, Enum):
    """Seller CMS page types"""
    TERMS_CONDITIONS = "terms_conditions"
    PRIVACY_POLICY = "privacy_policy"
    ABOUT_US = "about_us"


@dataclass
class CmsContent:
    type: ContentType
    content: str
    title: str = ""
    is_active: bool = True
    id: Optional[str] = None
    last_updated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "content": self.content,
            "isActive": self.is_active,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CmsContent":
        return cls(
            id=data.get("id") or data.get("_id"),
            type=ContentType(data.get("type")),
            title=data.get("title", ""),
            content=data.get("content", ""),
            is_active=bool(data.get("isActive", True)),
            last_updated=data.get("lastUpdated")
        )


@dataclass
class UploadedFile:
    id: str
    url: str
    filename: str = ""
    original_name: str = ""
    mime_type: str = ""
    size: int = 0
    is_image: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "filename": self.filename,
            "originalName": self.original_name,
            "mimeType": self.mime_type,
            "size": self.size,
            "isImage": self.is_image,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadedFile":
        return cls(
            id=str(data.get("id") or ""),
            url=data.get("bestImageUrl") or data.get("url", ""),
            filename=data.get("filename", ""),
            original_name=data.get("originalName", ""),
            mime_type=data.get("mimeType", ""),
            size=int(data.get("size") or 0),
            is_image=bool(data.get("isImage", False))
        )
