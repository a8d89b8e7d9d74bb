"""
Tests for buyer order history, tracking and cancellation.

Run with: python -m pytest tests/ -v
"""

import asyncio

import pytest

from marketplace_mcp.services.order_service import OrderService, order_query

ORDER = {
    "_id": "o1",
    "orderNumber": "ORD-1001",
    "status": "Processing",
    "amount": 58,
    "date": "2024-03-01",
    "products": [{"id": "lamp", "title": "Desk Lamp", "price": 29, "quantity": 2, "image": "lamp.png"}],
    "orderSummary": {"subTotal": 58, "shippingFee": 0, "total": 58},
    "trackingHistory": [{"status": "Pending", "timestamp": "2024-03-01T10:00:00Z"}],
}


@pytest.fixture
def orders(backend, notifier):
    return OrderService(backend, notifier)


class TestOrderQuery:

    def test_drops_empty_and_unknown_filters(self):
        query = order_query({"status": "Delivered", "search": "", "page": 2, "sort": None,
                             "startDate": "2024-01-01", "color": "red"})

        assert query == {"status": "Delivered", "page": 2, "startDate": "2024-01-01"}

    def test_none(self):
        assert order_query(None) == {}


class TestReads:

    def test_list_orders(self, orders, fake_backend):
        fake_backend.on("GET", "/orders/my-orders", json_body={
            "success": True,
            "data": [ORDER],
            "pagination": {"page": 1, "pageSize": 10, "totalPages": 1, "totalItems": 1},
        })

        result = asyncio.run(orders.list_orders({"status": "Processing", "search": ""}))

        found, pagination = result.value
        params = fake_backend.requests[0].url.params
        assert params["status"] == "Processing"
        assert "search" not in params
        assert found[0].id == "o1"
        assert found[0].products[0].quantity == 2
        assert pagination["totalItems"] == 1

    def test_get_by_id_or_number(self, orders, fake_backend):
        fake_backend.on("GET", "/orders/o1", json_body={"data": ORDER})
        fake_backend.on("GET", "/orders/number/ORD-1001", json_body={"data": ORDER})

        assert asyncio.run(orders.get_order(order_id="o1")).value.order_number == "ORD-1001"
        assert asyncio.run(orders.get_order(order_number="ORD-1001")).value.id == "o1"

    def test_order_amount_falls_back_to_summary_total(self, orders, fake_backend):
        fake_backend.on("GET", "/orders/o2", json_body={"data": {"id": "o2", "orderSummary": {"total": 12.5}}})

        assert asyncio.run(orders.get_order(order_id="o2")).value.amount == 12.5

    def test_id_or_number_required(self, orders, fake_backend):
        assert not asyncio.run(orders.get_order()).is_ok
        assert fake_backend.requests == []

    def test_tracking_from_list_or_order(self, orders, fake_backend):
        fake_backend.on("GET", "/orders/o1/tracking", json_body={"data": [
            {"status": "Pending", "timestamp": "t1"}, {"status": "Confirm", "timestamp": "t2", "location": "Hub"},
        ]})
        fake_backend.on("GET", "/orders/o2/tracking", json_body={"data": ORDER})

        history = asyncio.run(orders.get_tracking("o1")).value
        nested = asyncio.run(orders.get_tracking("o2")).value

        assert [event.status for event in history] == ["Pending", "Confirm"]
        assert history[1].location == "Hub"
        assert [event.status for event in nested] == ["Pending"]


class TestCancel:

    def test_cancel_sends_reason_and_toasts(self, orders, fake_backend, notifier):
        fake_backend.on("PATCH", "/orders/o1/cancel",
                        json_body={"data": {**ORDER, "status": "Cancelled", "cancelReason": "Changed my mind"}})

        result = asyncio.run(orders.cancel_order("o1", "  Changed my mind "))

        assert result.value.status == "Cancelled"
        assert fake_backend.body(fake_backend.requests[0]) == {"reason": "Changed my mind"}
        assert notifier.last.message == "Order cancelled successfully"

    def test_reason_required(self, orders, fake_backend, notifier):
        result = asyncio.run(orders.cancel_order("o1", "   "))

        assert not result.is_ok
        assert fake_backend.requests == []
        assert notifier.last.level == "error"

    def test_failure_shows_server_message(self, orders, fake_backend, notifier):
        fake_backend.on("PATCH", "/orders/o1/cancel", status=400,
                        json_body={"message": "Shipped orders cannot be cancelled"})

        result = asyncio.run(orders.cancel_order("o1", "Too late"))

        assert result.message == "Shipped orders cannot be cancelled"
        assert notifier.last.message == "Shipped orders cannot be cancelled"

    def test_failure_without_message_uses_default(self, orders, fake_backend):
        fake_backend.on("PATCH", "/orders/o1/cancel", status=500, json_body={})

        assert asyncio.run(orders.cancel_order("o1", "Oops")).message == "Failed to cancel order"
