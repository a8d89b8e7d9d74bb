"""Cart data models.

Serialized with the backend's camelCase field names.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from .checkout import DeliveryMethod


@dataclass
class SellerRef:
    """Seller an item is bought from"""
    id: str
    business_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "businessName": self.business_name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SellerRef":
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            business_name=data.get("businessName", "")
        )


@dataclass
class MarketplaceOptions:
    """Fulfillment methods a seller enabled for a product"""
    pickup: bool = False
    delivery: bool = False
    shipping: bool = False

    def supports(self, method: DeliveryMethod) -> bool:
        return getattr(self, DeliveryMethod(method).value) is True

    def to_dict(self) -> Dict[str, bool]:
        return {"pickup": self.pickup, "delivery": self.delivery, "shipping": self.shipping}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketplaceOptions":
        return cls(
            pickup=data.get("pickup") is True,
            delivery=data.get("delivery") is True,
            shipping=data.get("shipping") is True
        )


@dataclass
class Discount:
    discount_type: str = "none"  # none, flat, percentage
    discount_value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"discountType": self.discount_type, "discountValue": self.discount_value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Discount":
        return cls(
            discount_type=data.get("discountType", "none"),
            discount_value=data.get("discountValue")
        )


@dataclass
class CartItem:
    """A product line held by the cart or by a one-shot buy-now checkout"""
    id: str
    product_id: str
    title: str
    price: float
    quantity: int
    image: str = ""
    variant_id: Optional[str] = None
    slug: Optional[str] = None
    original_price: Optional[float] = None
    max_quantity: Optional[int] = None
    color: Optional[str] = None
    seller: Optional[SellerRef] = None
    marketplace_options: Optional[MarketplaceOptions] = None
    shipping_price: Optional[float] = None
    discount: Optional[Discount] = None
    selected_options: Dict[str, str] = field(default_factory=dict)

    @property
    def subtotal(self) -> float:
        """Calculate subtotal for this item"""
        return self.price * self.quantity

    @property
    def seller_id(self) -> Optional[str]:
        return self.seller.id if self.seller and self.seller.id else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        data = {
            "id": self.id,
            "productId": self.product_id,
            "title": self.title,
            "price": self.price,
            "quantity": self.quantity,
            "image": self.image,
        }
        optional = {
            "variantId": self.variant_id,
            "slug": self.slug,
            "originalPrice": self.original_price,
            "maxQuantity": self.max_quantity,
            "color": self.color,
            "seller": self.seller.to_dict() if self.seller else None,
            "marketplaceOptions": self.marketplace_options.to_dict() if self.marketplace_options else None,
            "shippingPrice": self.shipping_price,
            "discount": self.discount.to_dict() if self.discount else None,
            "selectedOptions": self.selected_options or None,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        """Create from dictionary"""
        product_id = str(data.get("productId") or data.get("product_id") or "")
        seller = data.get("seller")
        options = data.get("marketplaceOptions")
        discount = data.get("discount")
        max_quantity = data.get("maxQuantity")
        shipping_price = data.get("shippingPrice")
        original_price = data.get("originalPrice")

        return cls(
            id=str(data.get("id") or product_id),
            product_id=product_id,
            title=data.get("title", ""),
            price=float(data.get("price", 0)),
            quantity=int(data.get("quantity", 1)),
            image=data.get("image", ""),
            variant_id=data.get("variantId"),
            slug=data.get("slug"),
            original_price=float(original_price) if original_price is not None else None,
            max_quantity=int(max_quantity) if max_quantity is not None else None,
            color=data.get("color"),
            seller=SellerRef.from_dict(seller) if isinstance(seller, dict) else None,
            marketplace_options=MarketplaceOptions.from_dict(options) if isinstance(options, dict) else None,
            shipping_price=float(shipping_price) if shipping_price is not None else None,
            discount=Discount.from_dict(discount) if isinstance(discount, dict) else None,
            selected_options=dict(data.get("selectedOptions") or {})
        )


@dataclass
class Cart:
    """Persisted shopping cart"""
    items: List[CartItem] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return sum(item.subtotal for item in self.items)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def is_empty(self) -> bool:
        return not self.items

    def find(self, item_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"items": [item.to_dict() for item in self.items]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cart":
        return cls(items=[CartItem.from_dict(item) for item in data.get("items", [])])
