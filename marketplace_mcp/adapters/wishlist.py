"""Wishlist operations for MCP adapters"""

from typing import Any, Dict, List, Optional

from ..utils.decorators import with_error_handling
from .utils import get_app, respond, respond_result


def _wishlist(state) -> Dict[str, Any]:
    return state.to_dict()


@with_error_handling("Failed to load wishlist")
async def view_wishlist(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.wishlist.load()
    return respond_result(app, result, session_id, "Wishlist loaded", key="wishlist", convert=_wishlist)


@with_error_handling("Failed to add to wishlist")
async def add_to_wishlist(session_id: Optional[str] = None, product_id: str = "",
                          notification_enabled: bool = False, price_alert: Optional[Dict] = None,
                          **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.wishlist.add(product_id, notification_enabled, price_alert)
    return respond_result(app, result, session_id, "Product added to wishlist", key="wishlist",
                          convert=_wishlist)


@with_error_handling("Failed to remove from wishlist")
async def remove_from_wishlist(session_id: Optional[str] = None, product_id: str = "",
                               **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.wishlist.remove(product_id)
    return respond_result(app, result, session_id, "Product removed from wishlist", key="wishlist",
                          convert=_wishlist)


@with_error_handling("Failed to update wishlist")
async def toggle_wishlist(session_id: Optional[str] = None, product_id: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.wishlist.toggle(product_id)
    in_wishlist = app.wishlist.state.contains(product_id)
    return respond_result(app, result, session_id,
                          "Product added to wishlist" if in_wishlist else "Product removed from wishlist",
                          key="wishlist", convert=_wishlist)


@with_error_handling("Failed to update wishlist item")
async def update_wishlist_item(session_id: Optional[str] = None, product_id: str = "",
                               notification_enabled: Optional[bool] = None, price_alert: Optional[Dict] = None,
                               **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.wishlist.update(product_id, notification_enabled, price_alert)
    return respond_result(app, result, session_id, "Wishlist item updated", key="wishlist", convert=_wishlist)


@with_error_handling("Failed to clear wishlist")
async def clear_wishlist(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.wishlist.clear()
    return respond_result(app, result, session_id, "Wishlist cleared", key="wishlist", convert=_wishlist)


@with_error_handling("Failed to check wishlist")
async def check_wishlist(session_id: Optional[str] = None, product_ids: Optional[List[str]] = None,
                         **kwargs) -> Dict[str, Any]:
    """Membership for one or more products"""
    app = get_app()
    product_ids = product_ids or []
    if len(product_ids) == 1:
        result = await app.wishlist.check(product_ids[0])
        if result.is_ok:
            return respond(app, True, "Wishlist checked", session_id, membership={product_ids[0]: result.value})
        return respond(app, False, result.message, session_id)

    result = await app.wishlist.batch_check(product_ids)
    return respond_result(app, result, session_id, "Wishlist checked", key="membership")


@with_error_handling("Failed to load wishlist count")
async def get_wishlist_count(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.wishlist.get_count()
    return respond_result(app, result, session_id, "Wishlist count", key="count")
