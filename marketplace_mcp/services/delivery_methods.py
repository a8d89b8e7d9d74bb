"""
Delivery-method partitioning

Pure functions over an item list. Nothing here is cached: callers recompute
on every read so a change to the items or the selected method is never
served stale.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from ..models.cart import CartItem
from ..models.checkout import DeliveryMethod, SellerDeliveryOptions

UNASSIGNED_SELLER = "unassigned"

PLACE_ORDER_LABEL = "Place Order"
PROCESSING_LABEL = "Processing..."
NO_ITEMS_LABEL = "No items available"


def item_supports_delivery_method(item: CartItem, method: DeliveryMethod) -> bool:
    """Items without marketplace options support every method"""
    if item.marketplace_options is None:
        return True
    return item.marketplace_options.supports(method)


def get_available_delivery_methods(items: Iterable[CartItem]) -> Dict[DeliveryMethod, bool]:
    """A method is available when any item supports it"""
    items = list(items)
    return {
        method: any(item_supports_delivery_method(item, method) for item in items)
        for method in DeliveryMethod
    }


def partition_items(items: Iterable[CartItem], method: DeliveryMethod) -> Tuple[List[CartItem], List[CartItem]]:
    """Split items into (supported, unsupported) for the given method"""
    supported: List[CartItem] = []
    unsupported: List[CartItem] = []
    for item in items:
        if item_supports_delivery_method(item, method):
            supported.append(item)
        else:
            unsupported.append(item)
    return supported, unsupported


def resolve_delivery_methods(
    items: Iterable[CartItem], method: DeliveryMethod
) -> Tuple[Dict[DeliveryMethod, bool], List[CartItem], List[CartItem]]:
    """Return (available_methods, supported_items, unsupported_items)"""
    items = list(items)
    supported, unsupported = partition_items(items, method)
    return get_available_delivery_methods(items), supported, unsupported


def get_seller_delivery_options(items: Iterable[CartItem]) -> Dict[str, SellerDeliveryOptions]:
    """Group items by seller with the methods each seller can fulfil"""
    options: Dict[str, SellerDeliveryOptions] = {}
    for item in items:
        seller_id = item.seller_id or UNASSIGNED_SELLER
        entry = options.get(seller_id)
        if entry is None:
            entry = options[seller_id] = SellerDeliveryOptions(seller_id=seller_id)

        entry.items.append(item)
        entry.pickup = entry.pickup or item_supports_delivery_method(item, DeliveryMethod.PICKUP)
        entry.delivery = entry.delivery or item_supports_delivery_method(item, DeliveryMethod.DELIVERY)
        entry.shipping = entry.shipping or item_supports_delivery_method(item, DeliveryMethod.SHIPPING)
    return options


def default_delivery_method(available: Dict[DeliveryMethod, bool]) -> Optional[DeliveryMethod]:
    """First available of pickup, delivery, shipping"""
    for method in DeliveryMethod:
        if available.get(method):
            return method
    return None


def can_place_order(supported_items: List[CartItem], is_processing: bool) -> bool:
    return bool(supported_items) and not is_processing


def place_order_label(supported_items: List[CartItem], is_processing: bool) -> str:
    if is_processing:
        return PROCESSING_LABEL
    if not supported_items:
        return NO_ITEMS_LABEL
    return PLACE_ORDER_LABEL
