"""
Checkout service - place-order orchestration

Flow: IDLE -> VALIDATING -> CREATING_INTENT -> CONFIRMING_PAYMENT -> SUCCESS.
Any failure returns the session to IDLE with an error toast. The two
backend calls run one after the other and are never retried; the payment
flag in the app store is held for exactly the duration of those calls.
"""

from typing import Any, Dict, List, Optional, Tuple

from ..app_state import AppStore
from ..config import config
from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.cart import CartItem
from ..models.checkout import (
    CheckoutOutcome,
    CheckoutPhase,
    CheckoutTotals,
    DeliveryAddress,
    DeliveryMethod,
    PaymentIntentRequest,
    PaymentIntentResponse,
    SellerDeliveryOptions
)
from ..models.profile import Card
from ..models.result import Err, Ok, Result
from ..protocol.errors import CheckoutValidationError, ErrorHandler, MarketplaceError
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier
from .cart_service import CheckoutSource
from .delivery_methods import (
    can_place_order,
    default_delivery_method,
    get_available_delivery_methods,
    get_seller_delivery_options,
    place_order_label,
    resolve_delivery_methods
)
from .pricing import calculate_totals

logger = get_logger(__name__)

CREATE_INTENT_FALLBACK = "Failed to create payment intent"
CONFIRM_PAYMENT_FALLBACK = "Failed to confirm payment"
PAYMENT_CONFIRMED_MESSAGE = "Payment confirmed successfully"
ALREADY_PROCESSING_MESSAGE = "A payment is already being processed"
ALREADY_PLACED_MESSAGE = "This order has already been placed. Start a new checkout to order again."


def checkout_item_payload(item: CartItem) -> Dict[str, Any]:
    """Item as sent to the create-intent endpoint"""
    payload: Dict[str, Any] = {
        "productId": item.product_id,
        "title": item.title,
        "price": item.price,
        "quantity": item.quantity,
        "image": item.image,
    }
    if item.variant_id:
        payload["variantId"] = item.variant_id
    if item.color:
        payload["color"] = item.color
    if item.seller:
        payload["seller"] = item.seller.to_dict()
    return payload


def pick_default(entries: List[Any]) -> Optional[Any]:
    """The entry flagged as default, else the first one"""
    for entry in entries:
        if getattr(entry, "is_default", False):
            return entry
    return entries[0] if entries else None


class CheckoutSession:
    """State of one checkout page: item source, selections and phase.

    Everything derived from the items (available methods, partition,
    totals) is recomputed on each access.
    """

    def __init__(self, source: CheckoutSource, delivery_method: Optional[DeliveryMethod] = None,
                 delivery_base_fee: Optional[float] = None):
        self.source = source
        self.delivery_base_fee = (config.checkout.delivery_base_fee
                                  if delivery_base_fee is None else delivery_base_fee)
        self.delivery_method = DeliveryMethod(delivery_method) if delivery_method else (
            default_delivery_method(self.available_methods) or DeliveryMethod.PICKUP
        )
        self.addresses: List[DeliveryAddress] = []
        self.cards: List[Card] = []
        self.selected_address: Optional[DeliveryAddress] = None
        self.selected_card: Optional[Card] = None
        self.notes = ""
        self.phase = CheckoutPhase.IDLE
        self.show_success_dialog = False
        self.last_outcome: Optional[CheckoutOutcome] = None

    @property
    def items(self) -> List[CartItem]:
        return self.source.items

    @property
    def is_buy_now(self) -> bool:
        return self.source.is_buy_now

    def _resolved(self):
        return resolve_delivery_methods(self.items, self.delivery_method)

    @property
    def available_methods(self) -> Dict[DeliveryMethod, bool]:
        return get_available_delivery_methods(self.items)

    @property
    def supported_items(self) -> List[CartItem]:
        return self._resolved()[1]

    @property
    def unsupported_items(self) -> List[CartItem]:
        return self._resolved()[2]

    @property
    def seller_options(self) -> Dict[str, SellerDeliveryOptions]:
        return get_seller_delivery_options(self.items)

    @property
    def totals(self) -> CheckoutTotals:
        return calculate_totals(self.items, self.delivery_method, self.delivery_base_fee)

    def select_delivery_method(self, method: DeliveryMethod) -> bool:
        method = DeliveryMethod(method)
        if not self.available_methods.get(method):
            return False
        self.delivery_method = method
        return True

    def select_defaults(self, addresses: List[DeliveryAddress], cards: List[Card]):
        """Preselect the default address and card when nothing is selected yet"""
        self.addresses = list(addresses)
        self.cards = list(cards)
        if self.selected_address is None:
            self.selected_address = pick_default(addresses)
        if self.selected_card is None:
            self.selected_card = pick_default(cards)

    def select_address(self, address_id: str) -> bool:
        address = next((a for a in self.addresses if a.id == address_id), None)
        if address is None:
            return False
        self.selected_address = address
        return True

    def select_card(self, card_id: str) -> bool:
        card = next((c for c in self.cards if c.id == card_id), None)
        if card is None:
            return False
        self.selected_card = card
        return True

    def can_place_order(self, is_processing: bool) -> bool:
        return can_place_order(self.supported_items, is_processing)

    def place_order_label(self, is_processing: bool) -> str:
        return place_order_label(self.supported_items, is_processing)

    def summary(self, is_processing: bool = False) -> Dict[str, Any]:
        available, supported, unsupported = self._resolved()
        return {
            "delivery_method": self.delivery_method.value,
            "available_methods": {method.value: flag for method, flag in available.items()},
            "supported_items": [item.to_dict() for item in supported],
            "unsupported_items": [item.to_dict() for item in unsupported],
            "sellers": {seller_id: entry.to_dict() for seller_id, entry in self.seller_options.items()},
            "totals": self.totals.to_dict(),
            "selected_address": self.selected_address.to_dict() if self.selected_address else None,
            "selected_card": self.selected_card.to_dict() if self.selected_card else None,
            "addresses": [address.to_dict() for address in self.addresses],
            "cards": [card.to_dict() for card in self.cards],
            "is_buy_now": self.is_buy_now,
            "phase": self.phase.value,
            "can_place_order": self.can_place_order(is_processing),
            "place_order_label": self.place_order_label(is_processing),
        }


class CheckoutService:
    """Creates and confirms payment intents for a checkout session"""

    def __init__(self, backend: MarketplaceBackendClient, store: AppStore, notifier: ToastNotifier):
        """
        Initialize checkout service

        Args:
            backend: Marketplace backend client
            store: Application state (cart, payment flag)
            notifier: Toast sink for user-facing messages
        """
        self.backend = backend
        self.store = store
        self.notifier = notifier
        logger.info("CheckoutService initialized")

    # ================================
    # SESSION SETUP
    # ================================

    def start_checkout(self, buy_now_item: Optional[CartItem] = None) -> CheckoutSession:
        """Open a checkout over the persisted cart, or over a single buy-now item"""
        if buy_now_item is not None:
            source = CheckoutSource.buy_now(buy_now_item)
        else:
            source = CheckoutSource.from_cart(self.store.cart)

        session = CheckoutSession(source)
        self.store.checkout_session = session
        logger.info(f"[Checkout] Started {'buy-now' if source.is_buy_now else 'cart'} checkout "
                    f"with {len(source.items)} item(s), method={session.delivery_method.value}")
        return session

    async def load_payment_options(self, session: CheckoutSession) -> Tuple[List[DeliveryAddress], List[Card]]:
        """Fetch saved addresses and cards and preselect the defaults"""
        addresses: List[DeliveryAddress] = []
        cards: List[Card] = []
        try:
            addresses = [DeliveryAddress.from_dict(a) for a in unwrap_data(await self.backend.get_addresses(), [])]
        except MarketplaceError as e:
            logger.warning(f"[Checkout] Could not load addresses: {e}")
        try:
            cards = [Card.from_dict(c) for c in unwrap_data(await self.backend.get_cards(), [])]
        except MarketplaceError as e:
            logger.warning(f"[Checkout] Could not load cards: {e}")

        session.select_defaults(addresses, cards)
        return addresses, cards

    # ================================
    # PLACE ORDER
    # ================================

    def _validate(self, session: CheckoutSession) -> PaymentIntentRequest:
        """Build the intent request or raise before any network call"""
        supported = session.supported_items
        method = session.delivery_method

        if not supported:
            raise CheckoutValidationError(f"No items available for {method.value}")
        if method.requires_address and session.selected_address is None:
            raise CheckoutValidationError(f"Please select a {method.value} address")
        if session.selected_card is None:
            raise CheckoutValidationError("Please select a payment method")

        return PaymentIntentRequest(
            items=[checkout_item_payload(item) for item in supported],
            delivery_method=method,
            delivery_address=session.selected_address if method.requires_address else None,
            payment_card_id=session.selected_card.id,
            totals=session.totals,
            notes=session.notes
        )

    async def place_order(self, session: CheckoutSession) -> Result:
        """
        Validate, create the payment intent and confirm it

        Args:
            session: Checkout session to place

        Returns:
            Ok(CheckoutOutcome) or Err(message)
        """
        if self.store.is_processing_payment:
            logger.warning("[Checkout] Place order ignored while a payment is in flight")
            return Err(ALREADY_PROCESSING_MESSAGE)
        if session.phase is CheckoutPhase.SUCCESS:
            logger.warning("[Checkout] Place order ignored on a completed checkout")
            self.notifier.error(ALREADY_PLACED_MESSAGE)
            return Err(ALREADY_PLACED_MESSAGE)

        session.phase = CheckoutPhase.VALIDATING
        try:
            request = self._validate(session)
        except CheckoutValidationError as e:
            logger.info(f"[Checkout] Validation failed: {e.message}")
            self.notifier.error(e.message)
            session.phase = CheckoutPhase.IDLE
            return Err(e.message, e)

        self.store.set_processing_payment(True)
        try:
            session.phase = CheckoutPhase.CREATING_INTENT
            logger.info(f"[Checkout] Creating payment intent for {len(request.items)} item(s), "
                        f"total={request.totals.total}")
            response = await self.backend.create_payment_intent(request.to_dict())
            intent = PaymentIntentResponse.from_dict(unwrap_data(response, {}))
            if not intent.payment_intent_id or not intent.order_ids:
                raise MarketplaceError("Payment intent response is missing the payment intent or order ids",
                                       {"response": response})

            session.phase = CheckoutPhase.CONFIRMING_PAYMENT
            # Split orders share the payment intent; the backend links them from the first order id
            await self.backend.confirm_payment(intent.payment_intent_id, intent.order_ids[0])
            self.notifier.success(PAYMENT_CONFIRMED_MESSAGE)

            cart_cleared = False
            if not session.is_buy_now:
                self.store.cart.clear()
                cart_cleared = True

            outcome = CheckoutOutcome(
                payment_intent_id=intent.payment_intent_id,
                order_ids=intent.order_ids,
                order_numbers=intent.order_numbers,
                totals=request.totals,
                cart_cleared=cart_cleared
            )
            session.phase = CheckoutPhase.SUCCESS
            session.show_success_dialog = True
            session.last_outcome = outcome
            logger.info(f"[Checkout] Order placed: intent={intent.payment_intent_id}, orders={intent.order_ids}")
            return Ok(outcome)

        except Exception as e:
            fallback = (CONFIRM_PAYMENT_FALLBACK if session.phase == CheckoutPhase.CONFIRMING_PAYMENT
                        else CREATE_INTENT_FALLBACK)
            message = ErrorHandler.user_message(e, fallback)
            logger.error(f"[Checkout] {fallback} during {session.phase.value}: {e}",
                         exc_info=not isinstance(e, MarketplaceError))
            self.notifier.error(message)
            session.phase = CheckoutPhase.IDLE
            return Err(message, e)

        finally:
            self.store.set_processing_payment(False)

    # ================================
    # PAYMENT FOLLOW-UP
    # ================================

    async def get_payment_status(self, payment_intent_id: str) -> Tuple[bool, str, Optional[Dict]]:
        try:
            status = unwrap_data(await self.backend.get_payment_status(payment_intent_id), {})
            return True, f"Payment status: {status.get('status', 'unknown')}", status
        except MarketplaceError as e:
            message = ErrorHandler.user_message(e, "Failed to fetch payment status")
            self.notifier.error(message)
            return False, message, None

    async def cancel_payment(self, payment_intent_id: str, order_id: str) -> Tuple[bool, str, Optional[Dict]]:
        try:
            response = await self.backend.cancel_payment(payment_intent_id, order_id)
            self.notifier.success("Payment cancelled successfully")
            return True, "Payment cancelled successfully", unwrap_data(response)
        except MarketplaceError as e:
            message = ErrorHandler.user_message(e, "Failed to cancel payment")
            self.notifier.error(message)
            return False, message, None

    async def retry_payment(self, payment_intent_id: str, payment_method_id: str) -> Tuple[bool, str, Optional[Dict]]:
        try:
            data = unwrap_data(await self.backend.retry_payment(payment_intent_id, payment_method_id), {})
            return True, "Payment retry submitted", data
        except MarketplaceError as e:
            message = ErrorHandler.user_message(e, "Failed to retry payment")
            self.notifier.error(message)
            return False, message, None
