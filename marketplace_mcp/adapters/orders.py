"""Buyer order history for MCP adapters"""

from typing import Any, Dict, Optional

from ..utils.decorators import with_error_handling
from .utils import get_app, respond, respond_result


@with_error_handling("Failed to load orders")
async def get_my_orders(session_id: Optional[str] = None, status: Optional[str] = None,
                        search: Optional[str] = None, page: int = 1, limit: int = 10,
                        sort: Optional[str] = None, start_date: Optional[str] = None,
                        end_date: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    if not app.store.is_authenticated:
        return respond(app, False, "Please log in to see your orders", session_id)

    result = await app.orders.list_orders({
        "status": status, "search": search, "page": page, "limit": limit,
        "sort": sort, "startDate": start_date, "endDate": end_date,
    })
    if not result.is_ok:
        return respond(app, False, result.message, session_id)

    orders, pagination = result.value
    message = f"{len(orders)} order(s)" if orders else "You have no orders yet"
    return respond(app, True, message, session_id, orders=[order.to_dict() for order in orders],
                   pagination=pagination)


@with_error_handling("Failed to load order")
async def get_order(session_id: Optional[str] = None, order_id: Optional[str] = None,
                    order_number: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.orders.get_order(order_id=order_id, order_number=order_number)
    return respond_result(app, result, session_id, "Order loaded", key="order",
                          convert=lambda order: order.to_dict())


@with_error_handling("Failed to load order tracking")
async def get_order_tracking(session_id: Optional[str] = None, order_id: str = "",
                             **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.orders.get_tracking(order_id)
    return respond_result(app, result, session_id, "Order tracking loaded", key="tracking",
                          convert=lambda events: [event.to_dict() for event in events])


@with_error_handling("Failed to cancel order")
async def cancel_order(session_id: Optional[str] = None, order_id: str = "", reason: str = "",
                       **kwargs) -> Dict[str, Any]:
    app = get_app()
    result = await app.orders.cancel_order(order_id, reason)
    return respond_result(app, result, session_id, "Order cancelled successfully", key="order",
                          convert=lambda order: order.to_dict() if order else None)
