"""
Checkout pricing

Totals are computed from the items supported by the selected delivery
method. Unsupported items are summed separately and never reach the total.
"""

from typing import Dict, Iterable, List, Optional

from ..config import config
from ..models.cart import CartItem
from ..models.checkout import CheckoutTotals, DeliveryMethod
from .delivery_methods import UNASSIGNED_SELLER, partition_items


def calculate_subtotal(items: Iterable[CartItem]) -> float:
    return sum(item.price * item.quantity for item in items)


def calculate_shipping_fee(items: Iterable[CartItem]) -> float:
    """Sum of per-seller shipping maxima.

    Variants of one product share a single charge (the first variant's
    shippingPrice). A seller ships everything for its most expensive
    product rate, so products within a seller are not added together.
    """
    per_seller: Dict[str, Dict[str, float]] = {}
    for item in items:
        seller_id = item.seller_id or UNASSIGNED_SELLER
        products = per_seller.setdefault(seller_id, {})
        if item.product_id not in products:
            products[item.product_id] = item.shipping_price or 0.0

    return sum(max(products.values()) for products in per_seller.values() if products)


def calculate_delivery_fee(items: List[CartItem], method: DeliveryMethod,
                           base_fee: Optional[float] = None) -> float:
    method = DeliveryMethod(method)
    if method is DeliveryMethod.PICKUP:
        return 0.0
    if method is DeliveryMethod.DELIVERY:
        # TODO: replace the flat fee with distance-based pricing once the backend exposes seller coordinates
        return config.checkout.delivery_base_fee if base_fee is None else base_fee
    return calculate_shipping_fee(items)


def calculate_tax(items: List[CartItem], subtotal: float) -> float:
    return 0.0


def calculate_discount(items: List[CartItem], subtotal: float) -> float:
    return 0.0


def calculate_totals(items: Iterable[CartItem], method: DeliveryMethod,
                     base_fee: Optional[float] = None) -> CheckoutTotals:
    """Compute checkout totals for the given items and delivery method"""
    supported, unsupported = partition_items(items, method)

    subtotal = calculate_subtotal(supported)
    delivery_fee = calculate_delivery_fee(supported, method, base_fee)
    tax = calculate_tax(supported, subtotal)
    discount = calculate_discount(supported, subtotal)

    return CheckoutTotals(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        tax=tax,
        discount=discount,
        total=subtotal + delivery_fee + tax - discount,
        excluded_subtotal=calculate_subtotal(unsupported)
    )
