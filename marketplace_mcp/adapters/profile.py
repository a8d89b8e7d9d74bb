"""Profile and payment-management operations for MCP adapters

Saved cards, payout bank accounts, saved addresses, seller CMS pages and
file uploads.
"""

import base64
import binascii
from typing import Any, Dict, Optional

from ..models.checkout import DeliveryAddress
from ..models.profile import CmsContent, ContentType
from ..utils.decorators import with_error_handling
from .utils import get_app, respond, respond_result


def _as_dicts(values):
    return [value.to_dict() for value in values]


def _as_dict(value):
    return value.to_dict() if value is not None else None


# ================================
# CARDS
# ================================

@with_error_handling("Failed to load cards")
async def list_cards(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.cards.list_cards()
    return respond_result(app, result, session_id, "Saved cards", key="cards", convert=_as_dicts)


@with_error_handling("Failed to add card")
async def add_card(session_id: Optional[str] = None, card_number: str = "", expiry_month: int = 0,
                   expiry_year: int = 0, cvv: str = "", cardholder_name: str = "", is_default: bool = False,
                   **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.cards.create_card(card_number, expiry_month, expiry_year, cvv, cardholder_name, is_default)
    return respond_result(app, result, session_id, "Card added successfully", key="card", convert=_as_dict)


@with_error_handling("Failed to update card")
async def update_card(session_id: Optional[str] = None, card_id: str = "", cardholder_name: Optional[str] = None,
                      **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.cards.update_card(card_id, cardholder_name=cardholder_name)
    return respond_result(app, result, session_id, "Card updated successfully", key="card", convert=_as_dict)


@with_error_handling("Failed to update default card")
async def set_default_card(session_id: Optional[str] = None, card_id: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    if not app.cards.cards:
        await app.cards.list_cards()
    result = await app.cards.set_default(card_id)
    return respond_result(app, result, session_id, "Default card updated successfully", key="card",
                          convert=_as_dict)


@with_error_handling("Failed to remove card")
async def remove_card(session_id: Optional[str] = None, card_id: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.cards.delete_card(card_id)
    return respond_result(app, result, session_id, "Card removed successfully", key="card_id")


# ================================
# BANK ACCOUNTS
# ================================

@with_error_handling("Failed to load bank accounts")
async def list_bank_accounts(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.bank_accounts.list_accounts()
    return respond_result(app, result, session_id, "Bank accounts", key="bank_accounts", convert=_as_dicts)


@with_error_handling("Failed to add bank account")
async def add_bank_account(session_id: Optional[str] = None, account: Optional[Dict[str, Any]] = None,
                           **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.bank_accounts.create_account(account or {})
    return respond_result(app, result, session_id, "Bank account added successfully", key="bank_account",
                          convert=_as_dict)


@with_error_handling("Failed to set default bank account")
async def set_default_bank_account(session_id: Optional[str] = None, account_id: str = "",
                                   **kwargs) -> Dict[str, Any]:
    app = get_app()
    if not app.bank_accounts.accounts:
        await app.bank_accounts.list_accounts()
    result = await app.bank_accounts.set_default(account_id)
    return respond_result(app, result, session_id, "Default bank account updated", key="account_id")


@with_error_handling("Failed to delete bank account")
async def remove_bank_account(session_id: Optional[str] = None, account_id: str = "",
                              **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.bank_accounts.delete_account(account_id)
    return respond_result(app, result, session_id, "Bank account deleted successfully", key="account_id")


# ================================
# SAVED ADDRESSES
# ================================

@with_error_handling("Failed to load saved addresses")
async def list_addresses(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.addresses.list_addresses()
    return respond_result(app, result, session_id, "Saved addresses", key="addresses", convert=_as_dicts)


@with_error_handling("Failed to add saved address")
async def add_address(session_id: Optional[str] = None, address: Optional[Dict[str, Any]] = None,
                      **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.addresses.create_address(DeliveryAddress.from_dict(address or {}))
    return respond_result(app, result, session_id, "Saved address added successfully", key="address",
                          convert=_as_dict)


@with_error_handling("Failed to update saved address")
async def update_address(session_id: Optional[str] = None, address_id: str = "",
                         address: Optional[Dict[str, Any]] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.addresses.update_address(address_id, DeliveryAddress.from_dict(address or {}))
    return respond_result(app, result, session_id, "Saved address updated successfully", key="address",
                          convert=_as_dict)


@with_error_handling("Failed to update default saved address")
async def set_default_address(session_id: Optional[str] = None, address_id: str = "",
                              **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.addresses.set_default(address_id)
    return respond_result(app, result, session_id, "Default saved address updated", key="address",
                          convert=_as_dict)


@with_error_handling("Failed to delete saved address")
async def remove_address(session_id: Optional[str] = None, address_id: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.addresses.delete_address(address_id)
    return respond_result(app, result, session_id, "Saved address deleted successfully", key="address_id")


# ================================
# CMS PAGES
# ================================

@with_error_handling("Failed to save content")
async def save_cms_content(session_id: Optional[str] = None, content_type: str = "", title: str = "",
                           content: str = "", is_active: bool = True, **kwargs) -> Dict[str, Any]:
    app = get_app()
    try:
        page = CmsContent(type=ContentType(content_type), title=title, content=content, is_active=is_active)
    except ValueError:
        options = ", ".join(t.value for t in ContentType)
        return respond(app, False, f"Unknown content type '{content_type}'. Use one of: {options}", session_id)
    result = await app.cms.save_content(page)
    return respond_result(app, result, session_id, "Content saved successfully", key="content",
                          convert=_as_dict)


@with_error_handling("Failed to load content")
async def get_cms_content(session_id: Optional[str] = None, content_type: Optional[str] = None,
                          seller_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    """The signed-in seller's pages, or a seller's public pages when ``seller_id`` is given"""
    app = get_app()
    if seller_id:
        result = await app.cms.get_public_content(seller_id, content_type)
    elif content_type:
        result = await app.cms.get_content(content_type)
    else:
        result = await app.cms.list_content()

    def convert(value):
        return _as_dicts(value) if isinstance(value, list) else _as_dict(value)

    return respond_result(app, result, session_id, "Content loaded", key="content", convert=convert)


@with_error_handling("Failed to delete content")
async def delete_cms_content(session_id: Optional[str] = None, content_type: str = "",
                             **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.cms.delete_content(content_type)
    return respond_result(app, result, session_id, "Content deleted successfully", key="content_type")


# ================================
# UPLOADS
# ================================

@with_error_handling("Failed to upload file")
async def upload_file(session_id: Optional[str] = None, filename: str = "", content_base64: str = "",
                      mime_type: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    try:
        content = base64.b64decode(content_base64, validate=True)
    except (binascii.Error, ValueError):
        return respond(app, False, "File content must be base64 encoded", session_id)
    result = await app.files.upload(filename, content, mime_type)
    return respond_result(app, result, session_id, "File uploaded", key="file", convert=_as_dict)
