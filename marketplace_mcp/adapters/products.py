"""Product browsing for MCP adapters

Products can go straight into the cart or into a buy-now checkout; both
use the same cart line a product page would build.
"""

from typing import Any, Dict, Optional

from ..utils.decorators import with_error_handling
from ..utils.logger import get_logger
from . import checkout as checkout_adapter
from .utils import get_app, respond, respond_result

logger = get_logger(__name__)


async def _product_line(app, slug: Optional[str], product_id: Optional[str], variant_id: Optional[str],
                        quantity: int):
    result = await app.products.get_product(slug=slug, product_id=product_id)
    if not result.is_ok:
        return result
    return app.products.cart_line(result.value, quantity, variant_id)


@with_error_handling("Failed to load products")
async def list_products(session_id: Optional[str] = None, page: int = 1, limit: int = 20,
                        category: Optional[str] = None, search: Optional[str] = None,
                        **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.products.list_products(page, limit, category, search)
    if not result.is_ok:
        return respond(app, False, result.message, session_id)
    listing = result.value
    message = f"Found {listing.total} product(s)" if listing.products else "No products found"
    return respond(app, True, message, session_id, **listing.to_dict())


@with_error_handling("Failed to load product")
async def get_product(session_id: Optional[str] = None, slug: Optional[str] = None,
                      product_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.products.get_product(slug=slug, product_id=product_id)
    return respond_result(app, result, session_id, "Product loaded", key="product",
                          convert=lambda product: product.to_dict())


@with_error_handling("Failed to add item to cart")
async def add_product_to_cart(session_id: Optional[str] = None, slug: Optional[str] = None,
                              product_id: Optional[str] = None, variant_id: Optional[str] = None,
                              quantity: int = 1, **kwargs) -> Dict[str, Any]:
    """Add a catalogue product, priced after discount, to the cart"""
    app = get_app()
    result = await _product_line(app, slug, product_id, variant_id, quantity)
    if not result.is_ok:
        return respond(app, False, result.message, session_id)

    line, merged = app.store.cart.add_item(result.value)
    message = f"Updated {line.title} quantity to {line.quantity}" if merged else f"Added {line.title} to cart"
    logger.info(f"[Products] {message} (session {session_id})")
    return respond(app, True, message, session_id, item=line.to_dict(),
                   cart=app.store.cart.get_cart_summary())


@with_error_handling("Failed to start checkout")
async def buy_product_now(session_id: Optional[str] = None, slug: Optional[str] = None,
                          product_id: Optional[str] = None, variant_id: Optional[str] = None,
                          quantity: int = 1, **kwargs) -> Dict[str, Any]:
    """Open a checkout for one product without touching the cart"""
    app = get_app()
    result = await _product_line(app, slug, product_id, variant_id, quantity)
    if not result.is_ok:
        return respond(app, False, result.message, session_id)
    return await checkout_adapter.start_checkout(session_id=session_id, buy_now_item=result.value.to_dict())
