"""Product listing models and the product-to-cart-line conversion"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .cart import CartItem, Discount, MarketplaceOptions, SellerRef

PLACEHOLDER_IMAGE = "https://placehold.co/300x200.png"


def discounted_price(price: float, discount: Optional[Discount]) -> float:
    """Price after a flat or percentage discount; never below zero"""
    if discount is None or discount.discount_type == "none" or not discount.discount_value:
        return price
    if discount.discount_type == "flat":
        return max(0.0, price - discount.discount_value)
    if discount.discount_type == "percentage":
        return price * (1 - discount.discount_value / 100)
    return price


@dataclass
class ProductVariant:
    id: str = ""
    color: str = ""
    quantity: int = 0
    price: Optional[float] = None
    discount: Optional[Discount] = None
    images: List[str] = field(default_factory=list)
    out_of_stock: bool = False

    @property
    def cart_key(self) -> str:
        """Identifier used for the cart line; falls back to the colour"""
        return self.id or self.color

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "color": self.color,
            "quantity": self.quantity,
            "price": self.price,
            "discount": self.discount.to_dict() if self.discount else None,
            "images": self.images,
            "outOfStock": self.out_of_stock,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductVariant":
        discount = data.get("discount")
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            color=data.get("color") or "",
            quantity=int(data.get("quantity") or 0),
            price=float(data["price"]) if data.get("price") is not None else None,
            discount=Discount.from_dict(discount) if isinstance(discount, dict) else None,
            images=list(data.get("images") or []),
            out_of_stock=bool(data.get("outOfStock", False))
        )


@dataclass
class Product:
    id: str
    slug: str = ""
    title: str = ""
    price: float = 0.0
    description: str = ""
    category: str = ""
    quantity: int = 0
    color: str = ""
    images: List[str] = field(default_factory=list)
    discount: Optional[Discount] = None
    variants: List[ProductVariant] = field(default_factory=list)
    marketplace_options: Optional[MarketplaceOptions] = None
    shipping_price: Optional[float] = None
    seller: Optional[SellerRef] = None
    out_of_stock: bool = False
    rating: Optional[float] = None

    def find_variant(self, variant_id: str) -> Optional[ProductVariant]:
        return next((v for v in self.variants if variant_id in (v.id, v.color)), None)

    def to_cart_item(self, quantity: int = 1, variant: Optional[ProductVariant] = None) -> CartItem:
        """The cart line a shopper gets from this product and optional variant"""
        base_price = (variant.price if variant and variant.price else None) or self.price or 0.0
        discount = (variant.discount if variant else None) or self.discount
        color = (variant.color if variant else "") or self.color
        if variant is not None:
            max_quantity = 0 if variant.out_of_stock else variant.quantity
        else:
            max_quantity = 0 if self.out_of_stock else self.quantity
        images = (variant.images if variant else []) or self.images

        return CartItem(
            id="",
            product_id=self.id,
            variant_id=variant.cart_key if variant else None,
            title=f"{self.title} - {color}" if color else self.title,
            slug=self.slug or None,
            price=discounted_price(base_price, discount),
            original_price=base_price,
            discount=discount,
            quantity=quantity,
            image=images[0] if images else PLACEHOLDER_IMAGE,
            color=color or None,
            seller=self.seller,
            max_quantity=max_quantity,
            marketplace_options=self.marketplace_options,
            shipping_price=self.shipping_price,
            selected_options={"color": variant.color} if variant and variant.color else {}
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "price": self.price,
            "finalPrice": discounted_price(self.price, self.discount),
            "description": self.description,
            "category": self.category,
            "quantity": self.quantity,
            "color": self.color,
            "images": self.images,
            "variants": [variant.to_dict() for variant in self.variants],
            "marketplaceOptions": self.marketplace_options.to_dict() if self.marketplace_options else None,
            "shippingPrice": self.shipping_price,
            "seller": self.seller.to_dict() if self.seller else None,
            "outOfStock": self.out_of_stock,
            "rating": self.rating,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        seller = data.get("seller")
        seller_ref = None
        # Only sellers with a business profile are shown as a seller of record
        if isinstance(seller, dict):
            business_name = (seller.get("profile") or {}).get("businessName") or seller.get("businessName")
            if business_name:
                seller_ref = SellerRef(id=str(seller.get("_id") or seller.get("id") or ""),
                                       business_name=business_name)
        options = data.get("marketplaceOptions")
        discount = data.get("discount")
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            slug=data.get("slug") or "",
            title=data.get("title") or "",
            price=float(data.get("price") or 0),
            description=data.get("description") or "",
            category=data.get("category") or "",
            quantity=int(data.get("quantity") or 0),
            color=data.get("color") or "",
            images=list(data.get("images") or []),
            discount=Discount.from_dict(discount) if isinstance(discount, dict) else None,
            variants=[ProductVariant.from_dict(v) for v in data.get("variants") or []],
            marketplace_options=MarketplaceOptions.from_dict(options) if isinstance(options, dict) else None,
            shipping_price=float(data["shippingPrice"]) if data.get("shippingPrice") is not None else None,
            seller=seller_ref,
            out_of_stock=bool(data.get("outOfStock", False)),
            rating=data.get("rating")
        )


@dataclass
class ProductPage:
    products: List[Product]
    page: int = 1
    limit: int = 0
    total: int = 0
    total_pages: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "products": [product.to_dict() for product in self.products],
            "pagination": {"page": self.page, "limit": self.limit, "total": self.total,
                           "totalPages": self.total_pages},
        }

    @classmethod
    def from_api(cls, response: Dict[str, Any]) -> "ProductPage":
        products = [Product.from_dict(p) for p in response.get("data") or []]
        pagination = response.get("pagination") or {}
        return cls(
            products=products,
            page=int(pagination.get("page", 1)),
            limit=int(pagination.get("limit", len(products))),
            total=int(pagination.get("total", len(products))),
            total_pages=int(pagination.get("totalPages", 1))
        )
