"""
Tests for the place-order flow.

Run with: python -m pytest tests/ -v
"""

import asyncio

import httpx
import pytest

from marketplace_mcp.models.checkout import CheckoutPhase, DeliveryAddress, DeliveryMethod
from marketplace_mcp.models.profile import Card
from marketplace_mcp.protocol.errors import NO_RESPONSE_MESSAGE
from marketplace_mcp.services.checkout_service import (
    ALREADY_PLACED_MESSAGE,
    ALREADY_PROCESSING_MESSAGE,
    CONFIRM_PAYMENT_FALLBACK,
    CREATE_INTENT_FALLBACK,
    PAYMENT_CONFIRMED_MESSAGE,
    CheckoutService
)

CREATE_INTENT = "/checkout/create-payment-intent"
CONFIRM = "/checkout/confirm-payment"

INTENT_RESPONSE = {
    "success": True,
    "data": {
        "paymentIntentId": "pi_123",
        "orderIds": ["order-a", "order-b"],
        "orderNumbers": ["ORD-1", "ORD-2"],
    }
}


@pytest.fixture
def service(backend, store, notifier):
    return CheckoutService(backend, store, notifier)


@pytest.fixture
def address():
    return DeliveryAddress(id="addr-1", name="Sam Doe", phone="5550100", street="1 Main St",
                           city="Austin", state="TX", zip_code="78701", country="US")


@pytest.fixture
def card():
    return Card(id="card-1", last4="4242", brand="visa", is_default=True)


def ready_session(service, address, card, method=DeliveryMethod.SHIPPING, buy_now_item=None):
    session = service.start_checkout(buy_now_item)
    session.select_defaults([address], [card])
    session.select_delivery_method(method)
    return session


def mock_successful_payment(fake_backend):
    fake_backend.on("POST", CREATE_INTENT, json_body=INTENT_RESPONSE)
    fake_backend.on("POST", CONFIRM, json_body={"success": True})


class TestStartCheckout:
    """Opening a checkout session."""

    def test_cart_checkout(self, service, store, make_item):
        store.cart.add_item(make_item("p1"))

        session = service.start_checkout()

        assert store.checkout_session is session
        assert not session.is_buy_now
        assert [item.product_id for item in session.items] == ["p1"]

    def test_buy_now_checkout_ignores_cart(self, service, store, make_item):
        store.cart.add_item(make_item("p1"))

        session = service.start_checkout(make_item("p9"))

        assert session.is_buy_now
        assert [item.product_id for item in session.items] == ["p9"]

    def test_default_method_is_first_available(self, service, store, make_item):
        store.cart.add_item(make_item("p1", pickup=False, delivery=False, shipping=True))

        assert service.start_checkout().delivery_method == DeliveryMethod.SHIPPING

    def test_unavailable_method_is_refused(self, service, store, make_item):
        store.cart.add_item(make_item("p1", pickup=True, delivery=False, shipping=False))
        session = service.start_checkout()

        assert not session.select_delivery_method(DeliveryMethod.SHIPPING)
        assert session.delivery_method == DeliveryMethod.PICKUP


class TestPaymentOptions:
    """Saved addresses and cards are loaded and defaults preselected."""

    def test_defaults_are_preselected(self, service, store, fake_backend, make_item):
        store.cart.add_item(make_item("p1"))
        fake_backend.on("GET", "/addresses", json_body={"data": [
            {"id": "addr-1", "street": "1 Main St"},
            {"id": "addr-2", "street": "2 Oak Ave", "isDefault": True},
        ]})
        fake_backend.on("GET", "/user/cards", json_body={"data": [
            {"_id": "card-1", "last4": "4242", "brand": "visa"},
        ]})
        session = service.start_checkout()

        addresses, cards = asyncio.run(service.load_payment_options(session))

        assert len(addresses) == 2
        assert session.selected_address.id == "addr-2"
        assert session.selected_card.id == "card-1"

    def test_failed_lookup_leaves_selection_empty(self, service, store, fake_backend, make_item):
        store.cart.add_item(make_item("p1"))
        fake_backend.on("GET", "/addresses", json_body={"data": []})
        fake_backend.on("GET", "/user/cards", status=500, json_body={"message": "boom"})
        session = service.start_checkout()

        asyncio.run(service.load_payment_options(session))

        assert session.selected_address is None
        assert session.selected_card is None


class TestValidation:
    """Validation failures never reach the network."""

    def test_delivery_without_address(self, service, store, fake_backend, notifier, card, make_item):
        store.cart.add_item(make_item("p1"))
        session = service.start_checkout()
        session.select_defaults([], [card])
        session.select_delivery_method(DeliveryMethod.DELIVERY)

        result = asyncio.run(service.place_order(session))

        assert not result.is_ok
        assert result.message == "Please select a delivery address"
        assert notifier.messages("error") == ["Please select a delivery address"]
        assert fake_backend.requests == []
        assert session.phase == CheckoutPhase.IDLE
        assert not store.is_processing_payment

    def test_missing_card(self, service, store, fake_backend, address, make_item):
        store.cart.add_item(make_item("p1"))
        session = service.start_checkout()
        session.select_defaults([address], [])

        result = asyncio.run(service.place_order(session))

        assert result.message == "Please select a payment method"
        assert fake_backend.requests == []

    def test_pickup_needs_no_address(self, service, store, fake_backend, card, make_item):
        mock_successful_payment(fake_backend)
        store.cart.add_item(make_item("p1"))
        session = service.start_checkout()
        session.select_defaults([], [card])
        session.select_delivery_method(DeliveryMethod.PICKUP)

        result = asyncio.run(service.place_order(session))

        assert result.is_ok
        body = fake_backend.body(fake_backend.calls("POST", CREATE_INTENT)[0])
        assert "deliveryAddress" not in body


class TestPlaceOrder:
    """Create intent, confirm, then clean up."""

    def test_success_clears_cart(self, service, store, fake_backend, notifier, address, card, make_item):
        mock_successful_payment(fake_backend)
        store.cart.add_item(make_item("p1", shipping_price=5))
        session = ready_session(service, address, card)

        result = asyncio.run(service.place_order(session))

        assert result.is_ok
        outcome = result.value
        assert outcome.payment_intent_id == "pi_123"
        assert outcome.order_ids == ["order-a", "order-b"]
        assert outcome.cart_cleared
        assert store.cart.cart.is_empty()
        assert session.phase == CheckoutPhase.SUCCESS
        assert session.show_success_dialog
        assert notifier.messages("success") == [PAYMENT_CONFIRMED_MESSAGE]
        assert not store.is_processing_payment

    def test_confirms_against_first_order_id(self, service, store, fake_backend, address, card, make_item):
        mock_successful_payment(fake_backend)
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card)

        asyncio.run(service.place_order(session))

        confirm_calls = fake_backend.calls("POST", CONFIRM)
        assert len(confirm_calls) == 1
        assert fake_backend.body(confirm_calls[0]) == {"paymentIntentId": "pi_123", "orderId": "order-a"}

    def test_buy_now_leaves_cart_untouched(self, service, store, fake_backend, address, card, make_item):
        mock_successful_payment(fake_backend)
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card, buy_now_item=make_item("p9"))

        result = asyncio.run(service.place_order(session))

        assert result.is_ok
        assert not result.value.cart_cleared
        assert [item.product_id for item in store.cart.items] == ["p1"]

    def test_only_supported_items_are_sent(self, service, store, fake_backend, address, card, make_item):
        mock_successful_payment(fake_backend)
        store.cart.add_item(make_item("ships", price=20, shipping=True, shipping_price=5))
        store.cart.add_item(make_item("pickup-only", price=99, delivery=False, shipping=False))
        session = ready_session(service, address, card, method=DeliveryMethod.SHIPPING)

        asyncio.run(service.place_order(session))

        body = fake_backend.body(fake_backend.calls("POST", CREATE_INTENT)[0])
        assert [item["productId"] for item in body["items"]] == ["ships"]
        assert body["deliveryMethod"] == "shipping"
        assert body["paymentCardId"] == "card-1"
        assert body["deliveryAddress"]["zipCode"] == "78701"
        assert body["totals"] == {"subtotal": 20, "deliveryFee": 5, "tax": 0, "discount": 0, "total": 25}

    def test_flag_is_set_while_calls_run(self, service, store, fake_backend, address, card, make_item):
        seen = []

        def create_intent(request):
            seen.append(store.is_processing_payment)
            return httpx.Response(200, json=INTENT_RESPONSE)

        fake_backend.on("POST", CREATE_INTENT, handler=create_intent)
        fake_backend.on("POST", CONFIRM, json_body={"success": True})
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card)

        asyncio.run(service.place_order(session))

        assert seen == [True]
        assert not store.is_processing_payment

    def test_reentry_is_refused(self, service, store, fake_backend, address, card, make_item):
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card)
        store.set_processing_payment(True)

        result = asyncio.run(service.place_order(session))

        assert result.message == ALREADY_PROCESSING_MESSAGE
        assert fake_backend.requests == []
        assert store.is_processing_payment

    def test_completed_checkout_cannot_be_placed_again(self, service, store, fake_backend, notifier,
                                                       address, card, make_item):
        mock_successful_payment(fake_backend)
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card)
        asyncio.run(service.place_order(session))

        second = asyncio.run(service.place_order(session))

        assert second.message == ALREADY_PLACED_MESSAGE
        assert len(fake_backend.calls("POST", CREATE_INTENT)) == 1
        assert session.phase == CheckoutPhase.SUCCESS
        assert notifier.messages("error") == [ALREADY_PLACED_MESSAGE]

    def test_cart_changes_after_start_reach_the_request(self, service, store, fake_backend, address, card,
                                                        make_item):
        mock_successful_payment(fake_backend)
        store.cart.add_item(make_item("p1", price=10))
        removed, _ = store.cart.add_item(make_item("p2", price=30))
        session = ready_session(service, address, card, method=DeliveryMethod.PICKUP)

        store.cart.remove_item(removed.id)
        asyncio.run(service.place_order(session))

        body = fake_backend.body(fake_backend.calls("POST", CREATE_INTENT)[0])
        assert [item["productId"] for item in body["items"]] == ["p1"]
        assert body["totals"]["subtotal"] == 10


class TestPlaceOrderFailures:
    """Every failure returns to idle, toasts and resets the flag."""

    def test_server_message_is_shown(self, service, store, fake_backend, notifier, address, card, make_item):
        fake_backend.on("POST", CREATE_INTENT, status=402, json_body={"message": "Your card was declined"})
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card)

        result = asyncio.run(service.place_order(session))

        assert result.message == "Your card was declined"
        assert notifier.messages("error") == ["Your card was declined"]
        assert fake_backend.calls("POST", CONFIRM) == []
        assert session.phase == CheckoutPhase.IDLE
        assert not store.is_processing_payment
        assert len(store.cart.items) == 1

    def test_confirm_failure_uses_confirm_fallback(self, service, store, fake_backend, address, card, make_item):
        fake_backend.on("POST", CREATE_INTENT, json_body=INTENT_RESPONSE)
        fake_backend.on("POST", CONFIRM, status=500, json_body={})
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card)

        result = asyncio.run(service.place_order(session))

        assert result.message == CONFIRM_PAYMENT_FALLBACK
        assert len(store.cart.items) == 1
        assert not session.show_success_dialog

    def test_network_failure(self, service, store, fake_backend, address, card, make_item):
        fake_backend.fail_connection("POST", CREATE_INTENT)
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card)

        result = asyncio.run(service.place_order(session))

        assert result.message == NO_RESPONSE_MESSAGE
        assert not store.is_processing_payment

    def test_missing_order_ids(self, service, store, fake_backend, address, card, make_item):
        fake_backend.on("POST", CREATE_INTENT, json_body={"data": {"paymentIntentId": "pi_1", "orderIds": []}})
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card)

        result = asyncio.run(service.place_order(session))

        assert result.message == CREATE_INTENT_FALLBACK
        assert fake_backend.calls("POST", CONFIRM) == []
        assert session.phase == CheckoutPhase.IDLE

    def test_retry_after_failure_is_allowed(self, service, store, fake_backend, address, card, make_item):
        fake_backend.on("POST", CREATE_INTENT, status=500, json_body={"message": "Temporary outage"})
        store.cart.add_item(make_item("p1"))
        session = ready_session(service, address, card)
        asyncio.run(service.place_order(session))

        mock_successful_payment(fake_backend)
        result = asyncio.run(service.place_order(session))

        assert result.is_ok
        assert len(fake_backend.calls("POST", CREATE_INTENT)) == 2


class TestPaymentFollowUp:
    """Status, cancel and retry."""

    def test_payment_status(self, service, fake_backend):
        fake_backend.on("GET", "/checkout/payment-status/pi_1", json_body={"data": {"status": "succeeded"}})

        success, message, data = asyncio.run(service.get_payment_status("pi_1"))

        assert success
        assert message == "Payment status: succeeded"
        assert data == {"status": "succeeded"}

    def test_cancel_failure_is_toasted(self, service, fake_backend, notifier):
        fake_backend.on("POST", "/checkout/cancel-payment", status=400,
                        json_body={"error": {"message": "Payment already captured"}})

        success, message, _ = asyncio.run(service.cancel_payment("pi_1", "order-a"))

        assert not success
        assert message == "Payment already captured"
        assert notifier.last.message == "Payment already captured"
