"""Data models for the Marketplace Shopping MCP"""

from .checkout import (
    DeliveryMethod,
    CheckoutPhase,
    CheckoutTotals,
    SellerDeliveryOptions,
    DeliveryAddress,
    PaymentIntentRequest,
    PaymentIntentResponse,
    CheckoutOutcome
)
from .cart import Cart, CartItem, SellerRef, MarketplaceOptions, Discount
from .product import Product, ProductVariant, ProductPage
from .order import Order, OrderLine, TrackingEvent
from .auth import User, AuthTokens, BuyerSignup, SellerSignup, DriverSignup, signup_from_dict
from .result import Ok, Err, Result

__all__ = [
    'DeliveryMethod',
    'CheckoutPhase',
    'CheckoutTotals',
    'SellerDeliveryOptions',
    'DeliveryAddress',
    'PaymentIntentRequest',
    'PaymentIntentResponse',
    'CheckoutOutcome',
    'Cart',
    'CartItem',
    'SellerRef',
    'MarketplaceOptions',
    'Discount',
    'Product',
    'ProductVariant',
    'ProductPage',
    'Order',
    'OrderLine',
    'TrackingEvent',
    'User',
    'AuthTokens',
    'BuyerSignup',
    'SellerSignup',
    'DriverSignup',
    'signup_from_dict',
    'Ok',
    'Err',
    'Result'
]
