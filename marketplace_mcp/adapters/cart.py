"""Cart operations for MCP adapters"""

from typing import Any, Dict, Optional

from ..models.cart import CartItem
from ..utils.decorators import with_error_handling
from ..utils.logger import get_logger
from .utils import get_app, respond

logger = get_logger(__name__)


def _cart_payload(app) -> Dict[str, Any]:
    return {"cart": app.store.cart.get_cart_summary()}


@with_error_handling("Failed to add item to cart")
async def add_to_cart(session_id: Optional[str] = None, item: Optional[Dict] = None,
                      quantity: int = 1, **kwargs) -> Dict[str, Any]:
    """MCP adapter for add_to_cart"""
    app = get_app()
    if not item or not (item.get("productId") or item.get("product_id")):
        return respond(app, False, "Item must include a productId", session_id)

    cart_item = CartItem.from_dict({**item, "quantity": quantity})
    line, merged = app.store.cart.add_item(cart_item)
    message = f"Updated {line.title} quantity to {line.quantity}" if merged else f"Added {line.title} to cart"
    logger.info(f"[Cart] {message} (session {session_id})")
    return respond(app, True, message, session_id, item=line.to_dict(), **_cart_payload(app))


@with_error_handling("Failed to load cart")
async def view_cart(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    cart = app.store.cart.cart
    message = "Your cart is empty" if cart.is_empty() else f"{cart.total_items} item(s) in cart"
    return respond(app, True, message, session_id, **_cart_payload(app))


@with_error_handling("Failed to update cart")
async def update_cart_quantity(session_id: Optional[str] = None, item_id: str = "", quantity: int = 1,
                               **kwargs) -> Dict[str, Any]:
    app = get_app()
    if quantity < 1:
        return respond(app, False, "Quantity must be at least 1", session_id, **_cart_payload(app))
    updated = app.store.cart.update_quantity(item_id, quantity)
    if updated is None:
        return respond(app, False, f"Item {item_id} is not in the cart", session_id, **_cart_payload(app))
    return respond(app, True, f"{updated.title} quantity set to {updated.quantity}", session_id,
                   **_cart_payload(app))


@with_error_handling("Failed to remove item")
async def remove_from_cart(session_id: Optional[str] = None, item_id: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    if not app.store.cart.remove_item(item_id):
        return respond(app, False, f"Item {item_id} is not in the cart", session_id, **_cart_payload(app))
    return respond(app, True, "Item removed from cart", session_id, **_cart_payload(app))


@with_error_handling("Failed to clear cart")
async def clear_cart(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    app.store.cart.clear()
    return respond(app, True, "Cart cleared", session_id, **_cart_payload(app))
