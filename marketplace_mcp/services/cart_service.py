"""Cart service for managing the persisted shopping cart"""

import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..client_storage import CART_STORAGE_KEY, ClientStorage
from ..models.cart import Cart, CartItem
from ..utils.logger import get_logger

logger = get_logger(__name__)

CART_STORAGE_VERSION = 0


def _now_ms() -> int:
    return int(time.time() * 1000)


class CartService:
    """Persisted cart; every mutation is written back to client storage"""

    def __init__(self, storage: ClientStorage, clock: Callable[[], int] = _now_ms):
        """
        Initialize cart service

        Args:
            storage: Client storage holding the ``cart-storage`` entry
            clock: Millisecond clock used for new line ids
        """
        self.storage = storage
        self.clock = clock
        self.cart = Cart()

    def load(self) -> Cart:
        """Restore the cart from client storage"""
        persisted = self.storage.local.get_json(CART_STORAGE_KEY) or {}
        state = persisted.get("state") or {}
        try:
            self.cart = Cart.from_dict(state)
        except (TypeError, ValueError) as e:
            logger.warning(f"[Cart] Discarding unreadable persisted cart: {e}")
            self.cart = Cart()
        logger.info(f"[Cart] Loaded {self.cart.item_count} line(s) from storage")
        return self.cart

    def _persist(self):
        self.storage.local.set_json(CART_STORAGE_KEY, {
            "state": self.cart.to_dict(),
            "version": CART_STORAGE_VERSION
        })

    @property
    def items(self) -> List[CartItem]:
        return list(self.cart.items)

    def _find_matching(self, item: CartItem) -> Optional[int]:
        for index, existing in enumerate(self.cart.items):
            if item.variant_id and existing.variant_id:
                if existing.product_id == item.product_id and existing.variant_id == item.variant_id:
                    return index
            elif existing.product_id == item.product_id and existing.color == item.color:
                return index
        return None

    def _new_line_id(self, item: CartItem) -> str:
        suffix = ""
        if item.variant_id:
            suffix = f"-{item.variant_id}"
        elif item.color:
            suffix = f"-{item.color}"
        return f"{item.product_id}{suffix}-{self.clock()}"

    def add_item(self, item: CartItem) -> Tuple[CartItem, bool]:
        """
        Add a product line, merging with an existing line of the same variant

        Args:
            item: Item to add; its ``id`` is replaced for new lines

        Returns:
            Tuple of (resulting line, merged)
        """
        index = self._find_matching(item)
        if index is not None:
            existing = self.cart.items[index]
            quantity = existing.quantity + item.quantity
            if existing.max_quantity is not None:
                quantity = min(quantity, existing.max_quantity)
            updated = replace(existing, quantity=quantity)
            self.cart.items[index] = updated
            self._persist()
            logger.info(f"[Cart] Merged {item.title} into {updated.id}, quantity={quantity}")
            return updated, True

        quantity = item.quantity
        if item.max_quantity is not None:
            quantity = min(quantity, item.max_quantity)
        new_item = replace(item, id=self._new_line_id(item), quantity=quantity)
        self.cart.items.append(new_item)
        self._persist()
        logger.info(f"[Cart] Added {new_item.title} as {new_item.id}")
        return new_item, False

    def remove_item(self, item_id: str) -> bool:
        before = len(self.cart.items)
        self.cart.items = [item for item in self.cart.items if item.id != item_id]
        removed = len(self.cart.items) != before
        if removed:
            self._persist()
        return removed

    def update_quantity(self, item_id: str, quantity: int) -> Optional[CartItem]:
        """Set a line's quantity; values below 1 are ignored, values above maxQuantity are capped"""
        if quantity < 1:
            return None
        for index, item in enumerate(self.cart.items):
            if item.id == item_id:
                if item.max_quantity is not None:
                    quantity = min(quantity, item.max_quantity)
                updated = replace(item, quantity=quantity)
                self.cart.items[index] = updated
                self._persist()
                return updated
        return None

    def clear(self):
        self.cart = Cart()
        self._persist()
        logger.info("[Cart] Cleared")

    def get_cart_summary(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.cart.items],
            "total_items": self.cart.total_items,
            "total_price": self.cart.total_price,
            "item_count": self.cart.item_count,
        }


class CheckoutSource:
    """The items a checkout runs over: the persisted cart or one buy-now item.

    A cart source reads the cart on every access, so lines removed or
    changed after the checkout opened are reflected in it.
    """

    def __init__(self, cart_service: Optional[CartService] = None, buy_now_item: Optional[CartItem] = None):
        if (cart_service is None) == (buy_now_item is None):
            raise ValueError("A checkout source needs either the cart or a buy-now item")
        self.cart_service = cart_service
        self.buy_now_item = buy_now_item

    @property
    def is_buy_now(self) -> bool:
        return self.buy_now_item is not None

    @property
    def items(self) -> List[CartItem]:
        if self.buy_now_item is not None:
            return [self.buy_now_item]
        return self.cart_service.items

    @classmethod
    def from_cart(cls, cart_service: CartService) -> "CheckoutSource":
        return cls(cart_service=cart_service)

    @classmethod
    def buy_now(cls, item: CartItem) -> "CheckoutSource":
        return cls(buy_now_item=item)
