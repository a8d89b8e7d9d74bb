"""Buyer order history: listing, details, tracking and cancellation"""

from typing import Any, Dict, List, Optional

from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.order import Order, TrackingEvent
from ..models.result import Err, Ok, Result
from ..protocol.errors import ErrorHandler, MarketplaceError
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier

logger = get_logger(__name__)

ORDER_FILTERS = ("status", "search", "page", "limit", "sort", "startDate", "endDate")


def order_query(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Known filters with a value; empty strings and None are dropped"""
    return {key: value for key, value in (filters or {}).items()
            if key in ORDER_FILTERS and value not in (None, "")}


class OrderService:

    def __init__(self, backend: MarketplaceBackendClient, notifier: ToastNotifier):
        self.backend = backend
        self.notifier = notifier

    async def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> Result:
        """The signed-in buyer's orders as (orders, pagination)"""
        try:
            response = await self.backend.get_my_orders(order_query(filters))
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load orders"), e)

        orders: List[Order] = [Order.from_dict(entry) for entry in unwrap_data(response, [])]
        return Ok((orders, response.get("pagination") or {}))

    async def get_order(self, order_id: Optional[str] = None, order_number: Optional[str] = None) -> Result:
        if not order_id and not order_number:
            return Err("An order id or order number is required")
        try:
            if order_id:
                response = await self.backend.get_order(order_id)
            else:
                response = await self.backend.get_order_by_number(order_number)
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Order not found"), e)

        data = unwrap_data(response)
        if not isinstance(data, dict):
            return Err("Order not found")
        return Ok(Order.from_dict(data))

    async def get_tracking(self, order_id: str) -> Result:
        try:
            response = await self.backend.get_order_tracking(order_id)
        except MarketplaceError as e:
            return Err(ErrorHandler.user_message(e, "Failed to load order tracking"), e)

        data = unwrap_data(response, [])
        # Either the bare history or the order carrying it
        if isinstance(data, dict):
            data = data.get("trackingHistory") or []
        return Ok([TrackingEvent.from_dict(event) for event in data])

    async def cancel_order(self, order_id: str, reason: str) -> Result:
        if not reason or not reason.strip():
            message = "Please give a reason for cancelling"
            self.notifier.error(message)
            return Err(message)

        try:
            response = await self.backend.cancel_order(order_id, reason.strip())
        except MarketplaceError as e:
            message = ErrorHandler.user_message(e, "Failed to cancel order")
            logger.warning(f"[Orders] Cancel {order_id} failed: {e}")
            self.notifier.error(message)
            return Err(message, e)

        data = unwrap_data(response)
        order = Order.from_dict(data) if isinstance(data, dict) else None
        self.notifier.success("Order cancelled successfully")
        logger.info(f"[Orders] Cancelled {order_id}")
        return Ok(order)
