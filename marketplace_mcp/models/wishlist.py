"""Wishlist models"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class WishlistItem:
    product_id: str
    title: str = ""
    price: float = 0.0
    slug: str = ""
    added_at: str = ""
    notification_enabled: bool = False
    price_alert: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "title": self.title,
            "price": self.price,
            "slug": self.slug,
            "addedAt": self.added_at,
            "notificationEnabled": self.notification_enabled,
            "priceAlert": self.price_alert,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WishlistItem":
        product = data.get("product") or {}
        return cls(
            product_id=str(product.get("_id") or product.get("id") or data.get("productId") or ""),
            title=product.get("title", ""),
            price=float(product.get("price") or 0),
            slug=product.get("slug", ""),
            added_at=data.get("addedAt", ""),
            notification_enabled=bool(data.get("notificationEnabled", False)),
            price_alert=data.get("priceAlert")
        )

    @classmethod
    def placeholder(cls, product_id: str, notification_enabled: bool = False,
                    price_alert: Optional[Dict[str, Any]] = None) -> "WishlistItem":
        """Optimistic entry shown before the server responds"""
        return cls(
            product_id=product_id,
            added_at=datetime.now(timezone.utc).isoformat(),
            notification_enabled=notification_enabled,
            price_alert=price_alert
        )


@dataclass
class WishlistState:
    """Locally held wishlist, count and per-product membership"""
    items: List[WishlistItem] = field(default_factory=list)
    count: int = 0
    membership: Dict[str, bool] = field(default_factory=dict)

    def snapshot(self) -> "WishlistState":
        return replace(
            self,
            items=[replace(item) for item in self.items],
            membership=dict(self.membership)
        )

    def product_ids(self) -> List[str]:
        ids = [item.product_id for item in self.items]
        return ids + [pid for pid in self.membership if pid not in ids]

    def roll_back(self, snapshot: "WishlistState", product_ids: List[str], count_delta: int):
        """Undo one mutation for the given products, leaving other products as they are now"""
        for product_id in product_ids:
            previous = next((index for index, item in enumerate(snapshot.items)
                             if item.product_id == product_id), None)
            self.items = [item for item in self.items if item.product_id != product_id]
            if previous is not None:
                self.items.insert(min(previous, len(self.items)), replace(snapshot.items[previous]))
            if product_id in snapshot.membership:
                self.membership[product_id] = snapshot.membership[product_id]
            else:
                self.membership.pop(product_id, None)
        self.count = max(0, self.count - count_delta)

    def contains(self, product_id: str) -> bool:
        if product_id in self.membership:
            return self.membership[product_id]
        return any(item.product_id == product_id for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "count": self.count,
        }

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]]) -> "WishlistState":
        data = data or {}
        items = [WishlistItem.from_dict(item) for item in data.get("items", [])]
        return cls(
            items=items,
            count=int(data.get("itemCount", len(items))),
            membership={item.product_id: True for item in items}
        )
