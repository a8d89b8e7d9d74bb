"""Checkout data models"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
from enum import Enum


class DeliveryMethod(str, Enum):
    """Fulfillment methods, in default selection order"""
    PICKUP = "pickup"
    DELIVERY = "delivery"
    SHIPPING = "shipping"

    @property
    def requires_address(self) -> bool:
        return self is not DeliveryMethod.PICKUP


class CheckoutPhase(Enum):
    """Place-order state machine"""
    IDLE = "idle"
    VALIDATING = "validating"
    CREATING_INTENT = "creating_intent"
    CONFIRMING_PAYMENT = "confirming_payment"
    SUCCESS = "success"


@dataclass
class SellerDeliveryOptions:
    """Per-seller view of which methods its items support"""
    seller_id: str
    pickup: bool = False
    delivery: bool = False
    shipping: bool = False
    items: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pickup": self.pickup,
            "delivery": self.delivery,
            "shipping": self.shipping,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class CheckoutTotals:
    subtotal: float = 0.0
    delivery_fee: float = 0.0
    tax: float = 0.0
    discount: float = 0.0
    total: float = 0.0
    excluded_subtotal: float = 0.0

    def to_request_dict(self) -> Dict[str, float]:
        """Totals as sent to the create-intent endpoint"""
        return {
            "subtotal": self.subtotal,
            "deliveryFee": self.delivery_fee,
            "tax": self.tax,
            "discount": self.discount,
            "total": self.total,
        }

    def to_dict(self) -> Dict[str, float]:
        data = self.to_request_dict()
        data["excludedSubtotal"] = self.excluded_subtotal
        return data


@dataclass
class DeliveryAddress:
    """Saved delivery or shipping address"""
    id: str
    name: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    is_default: bool = False

    def to_request_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "phone": self.phone,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "country": self.country,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_request_dict()
        data.update({"id": self.id, "isDefault": self.is_default})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeliveryAddress":
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            name=data.get("name", ""),
            phone=data.get("phone", ""),
            street=data.get("street", ""),
            city=data.get("city", ""),
            state=data.get("state", ""),
            zip_code=data.get("zipCode", ""),
            country=data.get("country", ""),
            is_default=bool(data.get("isDefault", False))
        )


@dataclass
class PaymentIntentRequest:
    """Body of the create-payment-intent call; built once per place-order"""
    items: List[Dict[str, Any]]
    delivery_method: DeliveryMethod
    payment_card_id: str
    totals: CheckoutTotals
    delivery_address: Optional[DeliveryAddress] = None
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "items": self.items,
            "deliveryMethod": self.delivery_method.value,
            "paymentCardId": self.payment_card_id,
            "totals": self.totals.to_request_dict(),
            "notes": self.notes,
        }
        if self.delivery_address is not None:
            payload["deliveryAddress"] = self.delivery_address.to_request_dict()
        return payload


@dataclass
class PaymentIntentResponse:
    payment_intent_id: str
    order_ids: List[str]
    order_numbers: List[str] = field(default_factory=list)
    orders: List[Dict[str, Any]] = field(default_factory=list)
    client_secret: Optional[str] = None
    amount: Optional[float] = None
    requires_action: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentIntentResponse":
        order_ids = [str(order_id) for order_id in data.get("orderIds") or []]
        if not order_ids and data.get("orderId"):
            # Single-order responses predate split orders
            order_ids = [str(data["orderId"])]

        order_numbers = list(data.get("orderNumbers") or [])
        if not order_numbers and data.get("orderNumber"):
            order_numbers = [data["orderNumber"]]

        return cls(
            payment_intent_id=str(data.get("paymentIntentId") or ""),
            order_ids=order_ids,
            order_numbers=order_numbers,
            orders=list(data.get("orders") or []),
            client_secret=data.get("clientSecret"),
            amount=data.get("amount"),
            requires_action=bool(data.get("requiresAction", False))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paymentIntentId": self.payment_intent_id,
            "orderIds": self.order_ids,
            "orderNumbers": self.order_numbers,
            "orders": self.orders,
            "amount": self.amount,
            "requiresAction": self.requires_action,
        }


@dataclass
class CheckoutOutcome:
    """Result of a successful place-order"""
    payment_intent_id: str
    order_ids: List[str]
    order_numbers: List[str]
    totals: CheckoutTotals
    cart_cleared: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paymentIntentId": self.payment_intent_id,
            "orderIds": self.order_ids,
            "orderNumbers": self.order_numbers,
            "totals": self.totals.to_dict(),
            "cartCleared": self.cart_cleared,
        }
