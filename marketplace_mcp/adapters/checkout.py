"""Checkout and payment operations for MCP adapters

Flow: start_checkout -> (select_delivery_method / select_address /
select_payment_card) -> place_order. The checkout page path is pushed on
the navigation host so the payment guard protects it while a payment is
in flight.
"""

from typing import Any, Dict, Optional

from ..models.cart import CartItem
from ..models.checkout import DeliveryMethod
from ..services.checkout_service import CheckoutSession
from ..utils.decorators import with_error_handling
from ..utils.logger import get_logger
from .utils import get_app, respond

logger = get_logger(__name__)

CHECKOUT_PATH = "/checkout"
NO_CHECKOUT_MESSAGE = "No checkout in progress. Start one with start_checkout."


def _session_payload(app, session: CheckoutSession) -> Dict[str, Any]:
    return {"checkout": session.summary(app.store.is_processing_payment)}


def _active_session(app) -> Optional[CheckoutSession]:
    return app.store.checkout_session


@with_error_handling("Failed to start checkout")
async def start_checkout(session_id: Optional[str] = None, buy_now_item: Optional[Dict] = None,
                         **kwargs) -> Dict[str, Any]:
    """Open checkout over the cart, or over a single buy-now product"""
    app = get_app()
    item = CartItem.from_dict(buy_now_item) if buy_now_item else None
    if item is None and app.store.cart.cart.is_empty():
        return respond(app, False, "Your cart is empty", session_id)

    checkout = app.checkout.start_checkout(item)
    if app.navigation.current_path != CHECKOUT_PATH:
        app.navigation.navigate(CHECKOUT_PATH)

    if app.store.is_authenticated:
        await app.checkout.load_payment_options(checkout)
    else:
        logger.info("[Checkout] Not signed in; saved addresses and cards not loaded")

    return respond(app, True, f"Checkout ready with {len(checkout.items)} item(s)", session_id,
                   **_session_payload(app, checkout))


@with_error_handling("Failed to load checkout")
async def get_checkout_summary(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    checkout = _active_session(app)
    if checkout is None:
        return respond(app, False, NO_CHECKOUT_MESSAGE, session_id)
    return respond(app, True, "Checkout summary", session_id, **_session_payload(app, checkout))


@with_error_handling("Failed to change delivery method")
async def select_delivery_method(session_id: Optional[str] = None, method: str = "",
                                 **kwargs) -> Dict[str, Any]:
    app = get_app()
    checkout = _active_session(app)
    if checkout is None:
        return respond(app, False, NO_CHECKOUT_MESSAGE, session_id)

    try:
        delivery_method = DeliveryMethod(method.lower())
    except ValueError:
        options = ", ".join(m.value for m in DeliveryMethod)
        return respond(app, False, f"Unknown delivery method '{method}'. Use one of: {options}", session_id)

    if not checkout.select_delivery_method(delivery_method):
        return respond(app, False, f"No items in this checkout support {delivery_method.value}", session_id,
                       **_session_payload(app, checkout))
    return respond(app, True, f"Delivery method set to {delivery_method.value}", session_id,
                   **_session_payload(app, checkout))


@with_error_handling("Failed to select address")
async def select_address(session_id: Optional[str] = None, address_id: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    checkout = _active_session(app)
    if checkout is None:
        return respond(app, False, NO_CHECKOUT_MESSAGE, session_id)
    if not checkout.select_address(address_id):
        return respond(app, False, f"Address {address_id} not found", session_id)
    return respond(app, True, "Address selected", session_id, **_session_payload(app, checkout))


@with_error_handling("Failed to select payment method")
async def select_payment_card(session_id: Optional[str] = None, card_id: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    checkout = _active_session(app)
    if checkout is None:
        return respond(app, False, NO_CHECKOUT_MESSAGE, session_id)
    if not checkout.select_card(card_id):
        return respond(app, False, f"Card {card_id} not found", session_id)
    return respond(app, True, "Payment method selected", session_id, **_session_payload(app, checkout))


@with_error_handling("Failed to update order notes")
async def set_order_notes(session_id: Optional[str] = None, notes: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    checkout = _active_session(app)
    if checkout is None:
        return respond(app, False, NO_CHECKOUT_MESSAGE, session_id)
    checkout.notes = notes
    return respond(app, True, "Order notes saved", session_id)


@with_error_handling("Failed to place order")
async def place_order(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    """Create and confirm the payment intent for the active checkout"""
    app = get_app()
    checkout = _active_session(app)
    if checkout is None:
        return respond(app, False, NO_CHECKOUT_MESSAGE, session_id)

    result = await app.checkout.place_order(checkout)
    if not result.is_ok:
        return respond(app, False, result.message, session_id, **_session_payload(app, checkout))

    outcome = result.value
    return respond(app, True, "Order placed successfully", session_id,
                   order=outcome.to_dict(), show_success_dialog=checkout.show_success_dialog)


@with_error_handling("Failed to fetch payment status")
async def get_payment_status(session_id: Optional[str] = None, payment_intent_id: str = "",
                             **kwargs) -> Dict[str, Any]:
    app = get_app()
    success, message, data = await app.checkout.get_payment_status(payment_intent_id)
    return respond(app, success, message, session_id, payment=data)


@with_error_handling("Failed to cancel payment")
async def cancel_payment(session_id: Optional[str] = None, payment_intent_id: str = "", order_id: str = "",
                         **kwargs) -> Dict[str, Any]:
    app = get_app()
    success, message, data = await app.checkout.cancel_payment(payment_intent_id, order_id)
    return respond(app, success, message, session_id, payment=data)


@with_error_handling("Failed to retry payment")
async def retry_payment(session_id: Optional[str] = None, payment_intent_id: str = "",
                        payment_method_id: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    success, message, data = await app.checkout.retry_payment(payment_intent_id, payment_method_id)
    return respond(app, success, message, session_id, payment=data)
