"""
Wishlist service with optimistic updates

Every mutation snapshots the local state, applies the change immediately,
then calls the backend. ``Err`` restores only the products that mutation
touched and toasts, so overlapping mutations keep their own writes; ``Ok``
adopts the wishlist returned by the server when there is one.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.result import Err, Ok, Result
from ..models.wishlist import WishlistItem, WishlistState
from ..protocol.errors import ErrorHandler, MarketplaceError
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier

logger = get_logger(__name__)


class WishlistService:
    """Locally held wishlist kept in step with the backend"""

    def __init__(self, backend: MarketplaceBackendClient, notifier: ToastNotifier):
        self.backend = backend
        self.notifier = notifier
        self.state = WishlistState()

    async def _mutate(self, label: str, product_ids: Optional[List[str]], apply: Callable[[WishlistState], None],
                      call: Callable[[], Awaitable[Dict]], failure: str, success: str) -> Result:
        """product_ids=None means the mutation touches every product"""
        snapshot = self.state.snapshot()
        apply(self.state)
        count_delta = self.state.count - snapshot.count

        try:
            response = await call()
        except MarketplaceError as e:
            self.state.roll_back(snapshot, product_ids if product_ids is not None else snapshot.product_ids(),
                                 count_delta)
            message = ErrorHandler.user_message(e, failure)
            logger.warning(f"[Wishlist] {label} failed, rolled back: {e}")
            self.notifier.error(message)
            return Err(message, e)

        data = unwrap_data(response)
        if isinstance(data, dict) and "items" in data:
            self.state = WishlistState.from_api(data)
        self.notifier.success(success)
        logger.info(f"[Wishlist] {label} ok, count={self.state.count}")
        return Ok(self.state)

    # ================================
    # READS
    # ================================

    async def load(self) -> Result:
        try:
            response = await self.backend.get_wishlist()
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load wishlist"), e)
        self.state = WishlistState.from_api(unwrap_data(response, {}))
        return Ok(self.state)

    async def check(self, product_id: str) -> Result:
        try:
            response = await self.backend.check_wishlist(product_id)
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to check wishlist"), e)
        in_wishlist = bool(unwrap_data(response, {}).get("isInWishlist"))
        self.state.membership[product_id] = in_wishlist
        return Ok(in_wishlist)

    async def get_count(self) -> Result:
        try:
            response = await self.backend.get_wishlist_count()
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load wishlist count"), e)
        self.state.count = int(unwrap_data(response, {}).get("count", 0))
        return Ok(self.state.count)

    async def batch_check(self, product_ids: List[str]) -> Result:
        """Membership for many products at once (``{productId: bool}``)"""
        if not product_ids:
            return Ok({})
        try:
            response = await self.backend.batch_check_wishlist(product_ids)
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to check wishlist"), e)
        membership = {pid: bool(flag) for pid, flag in (unwrap_data(response, {}) or {}).items()}
        self.state.membership.update(membership)
        return Ok(membership)

    # ================================
    # MUTATIONS
    # ================================

    async def add(self, product_id: str, notification_enabled: bool = False,
                  price_alert: Optional[Dict[str, Any]] = None) -> Result:
        def apply(state: WishlistState):
            if not any(item.product_id == product_id for item in state.items):
                state.items.append(WishlistItem.placeholder(product_id, notification_enabled, price_alert))
                state.count += 1
            state.membership[product_id] = True

        payload: Dict[str, Any] = {"productId": product_id, "notificationEnabled": notification_enabled}
        if price_alert:
            payload["priceAlert"] = price_alert

        return await self._mutate(
            f"add {product_id}", [product_id], apply,
            lambda: self.backend.add_to_wishlist(payload),
            "Failed to add to wishlist", "Product added to wishlist"
        )

    async def remove(self, product_id: str) -> Result:
        def apply(state: WishlistState):
            before = len(state.items)
            state.items = [item for item in state.items if item.product_id != product_id]
            if len(state.items) != before:
                state.count = max(0, state.count - 1)
            state.membership[product_id] = False

        return await self._mutate(
            f"remove {product_id}", [product_id], apply,
            lambda: self.backend.remove_from_wishlist(product_id),
            "Failed to remove from wishlist", "Product removed from wishlist"
        )

    async def toggle(self, product_id: str) -> Result:
        """Add or remove depending on local membership"""
        if self.state.contains(product_id):
            return await self.remove(product_id)
        return await self.add(product_id)

    async def update(self, product_id: str, notification_enabled: Optional[bool] = None,
                     price_alert: Optional[Dict[str, Any]] = None) -> Result:
        def apply(state: WishlistState):
            for item in state.items:
                if item.product_id == product_id:
                    if notification_enabled is not None:
                        item.notification_enabled = notification_enabled
                    if price_alert is not None:
                        item.price_alert = price_alert

        payload: Dict[str, Any] = {"productId": product_id}
        if notification_enabled is not None:
            payload["notificationEnabled"] = notification_enabled
        if price_alert is not None:
            payload["priceAlert"] = price_alert

        return await self._mutate(
            f"update {product_id}", [product_id], apply,
            lambda: self.backend.update_wishlist_item(payload),
            "Failed to update wishlist item", "Wishlist item updated"
        )

    async def clear(self) -> Result:
        def apply(state: WishlistState):
            state.items = []
            state.count = 0
            state.membership = {pid: False for pid in state.membership}

        return await self._mutate(
            "clear", None, apply, self.backend.clear_wishlist,
            "Failed to clear wishlist", "Wishlist cleared"
        )
