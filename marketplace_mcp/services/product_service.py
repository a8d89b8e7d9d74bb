"""
Product catalogue reads and the cart line a product page would add

Listings and product pages are public, so none of these calls needs a
signed-in shopper.
"""

from typing import Optional

from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.product import Product, ProductPage
from ..models.result import Err, Ok, Result
from ..protocol.errors import ErrorHandler, MarketplaceError
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20


class ProductService:
    """Marketplace product listings"""

    def __init__(self, backend: MarketplaceBackendClient):
        self.backend = backend

    async def list_products(self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE,
                            category: Optional[str] = None, search: Optional[str] = None) -> Result:
        params = {"page": max(1, page), "limit": max(1, limit)}
        if category:
            params["category"] = category
        if search and search.strip():
            params["search"] = search.strip()

        try:
            response = await self.backend.get_products(params)
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load products"), e)

        listing = ProductPage.from_api(response if isinstance(response, dict) else {})
        logger.info(f"[Products] Page {listing.page}: {len(listing.products)} of {listing.total}")
        return Ok(listing)

    async def get_product(self, slug: Optional[str] = None, product_id: Optional[str] = None) -> Result:
        """One product by slug, or by id when no slug is given"""
        if not slug and not product_id:
            return Err("A product slug or id is required")

        try:
            if slug:
                response = await self.backend.get_product_by_slug(slug)
            else:
                response = await self.backend.get_product_by_id(product_id)
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Product not found"), e)

        data = unwrap_data(response)
        if not isinstance(data, dict):
            return Err("Product not found")
        return Ok(Product.from_dict(data))

    def cart_line(self, product: Product, quantity: int = 1, variant_id: Optional[str] = None) -> Result:
        """
        Build the cart line for a product, checking the chosen variant and stock

        Args:
            product: Product as loaded from the listing or product page
            quantity: Units wanted, at least one
            variant_id: Variant id or colour; the base product when omitted

        Returns:
            Ok(CartItem) or Err with the reason the product can't be bought
        """
        variant = None
        if variant_id:
            variant = product.find_variant(variant_id)
            if variant is None:
                return Err(f"{product.title} has no variant {variant_id}")

        item = product.to_cart_item(quantity, variant)
        if quantity < 1:
            return Err("Quantity must be at least 1")
        if not item.max_quantity:
            return Err(f"{item.title} is out of stock")
        if quantity > item.max_quantity:
            return Err(f"Only {item.max_quantity} of {item.title} available")
        return Ok(item)
