#!/usr/bin/env python3
"""
Marketplace Shopping MCP Server - Official FastMCP Implementation

Exposes the marketplace client (accounts, products, cart, checkout, orders,
wishlist and profile management) as MCP tools using the official MCP SDK.

=== AGENT INSTRUCTIONS ===
You are a marketplace shopping assistant for buyers, sellers and drivers.

Account Flow:
1. signup (role: buyer | seller | driver) → a 6-digit code is emailed
2. verify_otp → account verified and signed in
   - resend_otp is limited to once per cooldown window; get_otp_cooldown
     reports the seconds remaining
3. login / logout / get_auth_status for returning users

Order Journey Flow:
1. list_products / get_product → add_product_to_cart → view_cart
2. start_checkout (or buy_product_now for a single product)
3. select_delivery_method (pickup | delivery | shipping)
   - Items that do not support the chosen method are listed as unsupported
     and are NOT charged or ordered
4. select_address (delivery and shipping only) and select_payment_card
5. place_order → creates and confirms the payment intent

IMPORTANT:
- Call place_order once per checkout; it refuses to run while a payment
  is already processing and once the order has been placed
- Navigation away from checkout is blocked while a payment is processing
- After an order is placed, get_my_orders / get_order / get_order_tracking
  follow it; cancel_order needs a reason
"""

import json
import time
from typing import Any, Dict, List, Optional

# Official MCP SDK imports
from mcp.server.fastmcp import FastMCP, Context

from .adapters.auth import (
    signup as signup_adapter,
    complete_google_signup as google_signup_adapter,
    login as login_adapter,
    logout as logout_adapter,
    get_auth_status as auth_status_adapter,
    verify_otp as verify_otp_adapter,
    resend_otp as resend_otp_adapter,
    get_otp_cooldown as otp_cooldown_adapter,
    change_password as change_password_adapter,
    forgot_password as forgot_password_adapter,
    reset_password as reset_password_adapter
)
from .adapters.cart import (
    add_to_cart as cart_add_adapter,
    view_cart as cart_view_adapter,
    update_cart_quantity as cart_update_adapter,
    remove_from_cart as cart_remove_adapter,
    clear_cart as cart_clear_adapter
)
from .adapters.checkout import (
    start_checkout as start_checkout_adapter,
    get_checkout_summary as checkout_summary_adapter,
    select_delivery_method as delivery_method_adapter,
    select_address as select_address_adapter,
    select_payment_card as select_card_adapter,
    set_order_notes as order_notes_adapter,
    place_order as place_order_adapter,
    get_payment_status as payment_status_adapter,
    cancel_payment as cancel_payment_adapter,
    retry_payment as retry_payment_adapter
)
from .adapters.products import (
    list_products as products_list_adapter,
    get_product as product_get_adapter,
    add_product_to_cart as product_add_to_cart_adapter,
    buy_product_now as product_buy_now_adapter
)
from .adapters.orders import (
    get_my_orders as orders_list_adapter,
    get_order as order_get_adapter,
    get_order_tracking as order_tracking_adapter,
    cancel_order as order_cancel_adapter
)
from .adapters.navigation import (
    navigate as navigate_adapter,
    go_back as go_back_adapter,
    get_navigation_state as navigation_state_adapter
)
from .adapters.wishlist import (
    view_wishlist as wishlist_view_adapter,
    add_to_wishlist as wishlist_add_adapter,
    remove_from_wishlist as wishlist_remove_adapter,
    toggle_wishlist as wishlist_toggle_adapter,
    update_wishlist_item as wishlist_update_adapter,
    clear_wishlist as wishlist_clear_adapter,
    check_wishlist as wishlist_check_adapter,
    get_wishlist_count as wishlist_count_adapter
)
from .adapters.profile import (
    list_cards as cards_list_adapter,
    add_card as card_add_adapter,
    update_card as card_update_adapter,
    set_default_card as card_default_adapter,
    remove_card as card_remove_adapter,
    list_bank_accounts as bank_list_adapter,
    add_bank_account as bank_add_adapter,
    set_default_bank_account as bank_default_adapter,
    remove_bank_account as bank_remove_adapter,
    list_addresses as address_list_adapter,
    add_address as address_add_adapter,
    update_address as address_update_adapter,
    set_default_address as address_default_adapter,
    remove_address as address_remove_adapter,
    save_cms_content as cms_save_adapter,
    get_cms_content as cms_get_adapter,
    delete_cms_content as cms_delete_adapter,
    upload_file as upload_adapter
)
from .adapters.utils import get_app

from .config import config
from .utils import get_logger
from .utils.logger import get_mcp_operations_logger

logger = get_logger(__name__)
mcp_ops_logger = get_mcp_operations_logger()

# Initialize FastMCP server with official SDK
mcp = FastMCP("marketplace-shopping")

DEFAULT_SESSION_ID = "default_mcp_session"


def extract_session_from_context(ctx: Optional[Context], **kwargs) -> str:
    """Session id for logging and the response envelope.

    Precedence: explicit session_id, then the MCP transport session,
    then a fixed default.
    """
    if kwargs.get('session_id'):
        return kwargs['session_id']

    session = getattr(ctx, 'session', None) if ctx is not None else None
    mcp_session_id = getattr(session, 'id', None) if session is not None else None
    if mcp_session_id:
        return str(mcp_session_id)

    return DEFAULT_SESSION_ID


async def handle_tool_execution(tool_name: str, adapter_func, ctx: Optional[Context], **kwargs) -> str:
    """Generic handler for tool execution with request/response logging"""
    start_time = time.time()
    session_id = extract_session_from_context(ctx, **kwargs)

    try:
        mcp_ops_logger.log_tool_request(tool_name, session_id, {
            "tool": tool_name,
            "session_id": session_id,
            "parameters": kwargs
        })
        logger.info(f"[{tool_name}] Executing with session: {session_id}")

        kwargs['session_id'] = session_id
        result = await adapter_func(**kwargs)

        execution_time_ms = (time.time() - start_time) * 1000
        result_data = result if isinstance(result, dict) else {"result": str(result)}
        mcp_ops_logger.log_tool_response(
            tool_name, session_id, result_data, execution_time_ms,
            status="success" if result_data.get("success") else "failure"
        )
        logger.info(f"[{tool_name}] Completed in {execution_time_ms:.2f}ms "
                    f"(success={result_data.get('success')})")

        # JSON strings for mcp-agent compatibility
        if isinstance(result, dict):
            return json.dumps(result, indent=2, default=str)
        return str(result)

    except Exception as e:
        execution_time_ms = (time.time() - start_time) * 1000
        mcp_ops_logger.log_tool_error(tool_name, session_id, e, execution_time_ms)

        error_msg = f"Error in {tool_name}: {str(e)}"
        logger.error(f"[{tool_name}] {error_msg} (after {execution_time_ms:.2f}ms)", exc_info=True)

        return json.dumps({
            "success": False,
            "error": error_msg,
            "session_id": session_id,
            "execution_time_ms": execution_time_ms
        }, indent=2)


# ============================================================================
# ACCOUNT - FastMCP Tools
# ============================================================================

@mcp.tool()
async def signup(ctx: Context, signup: Dict[str, Any], session_id: Optional[str] = None) -> str:
    """Create a buyer, seller or driver account.

    `signup.role` selects the variant:
    - buyer: email, password, firstName, lastName, phone?
    - seller: + businessName, businessAddress, phone, einNumber, salesTaxId,
      cellPhone?, localDelivery ("yes"/"no")
    - driver: + phone
    A verification code is emailed afterwards; finish with verify_otp.
    """
    return await handle_tool_execution("signup", signup_adapter, ctx, signup=signup, session_id=session_id)


@mcp.tool()
async def complete_google_signup(ctx: Context, user_id: str, signup: Dict[str, Any],
                                 session_id: Optional[str] = None) -> str:
    """Finish a Google sign-in by choosing the account role and its details."""
    return await handle_tool_execution("complete_google_signup", google_signup_adapter, ctx,
                                       user_id=user_id, signup=signup, session_id=session_id)


@mcp.tool()
async def verify_otp(ctx: Context, otp: str, session_id: Optional[str] = None) -> str:
    """Verify the 6-digit code emailed at signup. Signs the user in on success."""
    return await handle_tool_execution("verify_otp", verify_otp_adapter, ctx, otp=otp, session_id=session_id)


@mcp.tool()
async def resend_otp(ctx: Context, session_id: Optional[str] = None) -> str:
    """Resend the signup verification code (rate limited by a cooldown)."""
    return await handle_tool_execution("resend_otp", resend_otp_adapter, ctx, session_id=session_id)


@mcp.tool()
async def get_otp_cooldown(ctx: Context, session_id: Optional[str] = None) -> str:
    """Seconds remaining before resend_otp is allowed again."""
    return await handle_tool_execution("get_otp_cooldown", otp_cooldown_adapter, ctx, session_id=session_id)


@mcp.tool()
async def login(ctx: Context, email: str, password: str, session_id: Optional[str] = None) -> str:
    """Sign in with email and password."""
    return await handle_tool_execution("login", login_adapter, ctx, email=email, password=password,
                                       session_id=session_id)


@mcp.tool()
async def logout(ctx: Context, session_id: Optional[str] = None) -> str:
    """Sign out and forget stored tokens."""
    return await handle_tool_execution("logout", logout_adapter, ctx, session_id=session_id)


@mcp.tool()
async def get_auth_status(ctx: Context, session_id: Optional[str] = None) -> str:
    """Check whether the stored session is still valid and who is signed in."""
    return await handle_tool_execution("get_auth_status", auth_status_adapter, ctx, session_id=session_id)


@mcp.tool()
async def change_password(ctx: Context, current_password: str, new_password: str,
                          session_id: Optional[str] = None) -> str:
    """Change the signed-in user's password."""
    return await handle_tool_execution("change_password", change_password_adapter, ctx,
                                       current_password=current_password, new_password=new_password,
                                       session_id=session_id)


@mcp.tool()
async def forgot_password(ctx: Context, email: str, session_id: Optional[str] = None) -> str:
    """Email a password reset link."""
    return await handle_tool_execution("forgot_password", forgot_password_adapter, ctx, email=email,
                                       session_id=session_id)


@mcp.tool()
async def reset_password(ctx: Context, token: str, password: str, session_id: Optional[str] = None) -> str:
    """Set a new password using the token from the reset email."""
    return await handle_tool_execution("reset_password", reset_password_adapter, ctx, token=token,
                                       password=password, session_id=session_id)


# ============================================================================
# PRODUCTS - FastMCP Tools
# ============================================================================

@mcp.tool()
async def list_products(ctx: Context, page: int = 1, limit: int = 20, category: Optional[str] = None,
                        search: Optional[str] = None, session_id: Optional[str] = None) -> str:
    """Browse the marketplace catalogue, optionally by category or search text."""
    return await handle_tool_execution("list_products", products_list_adapter, ctx, page=page, limit=limit,
                                       category=category, search=search, session_id=session_id)


@mcp.tool()
async def get_product(ctx: Context, slug: Optional[str] = None, product_id: Optional[str] = None,
                      session_id: Optional[str] = None) -> str:
    """Product details with variants, by slug or id."""
    return await handle_tool_execution("get_product", product_get_adapter, ctx, slug=slug,
                                       product_id=product_id, session_id=session_id)


@mcp.tool()
async def add_product_to_cart(ctx: Context, slug: Optional[str] = None, product_id: Optional[str] = None,
                              variant_id: Optional[str] = None, quantity: int = 1,
                              session_id: Optional[str] = None) -> str:
    """Add a product (and optional variant id or colour) to the cart at its discounted price."""
    return await handle_tool_execution("add_product_to_cart", product_add_to_cart_adapter, ctx, slug=slug,
                                       product_id=product_id, variant_id=variant_id, quantity=quantity,
                                       session_id=session_id)


@mcp.tool()
async def buy_product_now(ctx: Context, slug: Optional[str] = None, product_id: Optional[str] = None,
                          variant_id: Optional[str] = None, quantity: int = 1,
                          session_id: Optional[str] = None) -> str:
    """Start a checkout for this product only; the cart is left as it is."""
    return await handle_tool_execution("buy_product_now", product_buy_now_adapter, ctx, slug=slug,
                                       product_id=product_id, variant_id=variant_id, quantity=quantity,
                                       session_id=session_id)


# ============================================================================
# CART - FastMCP Tools
# ============================================================================

@mcp.tool()
async def add_to_cart(ctx: Context, item: Dict[str, Any], quantity: int = 1,
                      session_id: Optional[str] = None) -> str:
    """Add a product to the cart.

    `item` uses marketplace product fields: productId, title, price, image,
    variantId?, color?, maxQuantity?, seller {id, businessName},
    marketplaceOptions {pickup, delivery, shipping}, shippingPrice?.
    Adding the same product variant again increases its quantity.
    """
    return await handle_tool_execution("add_to_cart", cart_add_adapter, ctx, item=item, quantity=quantity,
                                       session_id=session_id)


@mcp.tool()
async def view_cart(ctx: Context, session_id: Optional[str] = None) -> str:
    """View all items in the cart with totals."""
    return await handle_tool_execution("view_cart", cart_view_adapter, ctx, session_id=session_id)


@mcp.tool()
async def update_cart_quantity(ctx: Context, item_id: str, quantity: int, session_id: Optional[str] = None) -> str:
    """Update the quantity of a cart line (capped at the product's maximum)."""
    return await handle_tool_execution("update_cart_quantity", cart_update_adapter, ctx, item_id=item_id,
                                       quantity=quantity, session_id=session_id)


@mcp.tool()
async def remove_from_cart(ctx: Context, item_id: str, session_id: Optional[str] = None) -> str:
    """Remove a line from the cart."""
    return await handle_tool_execution("remove_from_cart", cart_remove_adapter, ctx, item_id=item_id,
                                       session_id=session_id)


@mcp.tool()
async def clear_cart(ctx: Context, session_id: Optional[str] = None) -> str:
    """Remove every item from the cart."""
    return await handle_tool_execution("clear_cart", cart_clear_adapter, ctx, session_id=session_id)


# ============================================================================
# CHECKOUT - FastMCP Tools
# ============================================================================

@mcp.tool()
async def start_checkout(ctx: Context, buy_now_item: Optional[Dict[str, Any]] = None,
                         session_id: Optional[str] = None) -> str:
    """Start checkout over the cart, or over one product when buy_now_item is given.

    Buy-now checkouts never touch the cart. Saved addresses and cards are
    loaded and the defaults preselected.
    """
    return await handle_tool_execution("start_checkout", start_checkout_adapter, ctx,
                                       buy_now_item=buy_now_item, session_id=session_id)


@mcp.tool()
async def get_checkout_summary(ctx: Context, session_id: Optional[str] = None) -> str:
    """Current checkout: available methods, supported/unsupported items, totals, selections."""
    return await handle_tool_execution("get_checkout_summary", checkout_summary_adapter, ctx,
                                       session_id=session_id)


@mcp.tool()
async def select_delivery_method(ctx: Context, method: str, session_id: Optional[str] = None) -> str:
    """Choose pickup, delivery or shipping for the active checkout."""
    return await handle_tool_execution("select_delivery_method", delivery_method_adapter, ctx, method=method,
                                       session_id=session_id)


@mcp.tool()
async def select_address(ctx: Context, address_id: str, session_id: Optional[str] = None) -> str:
    """Choose the saved address used for delivery or shipping."""
    return await handle_tool_execution("select_address", select_address_adapter, ctx, address_id=address_id,
                                       session_id=session_id)


@mcp.tool()
async def select_payment_card(ctx: Context, card_id: str, session_id: Optional[str] = None) -> str:
    """Choose the saved card to pay with."""
    return await handle_tool_execution("select_payment_card", select_card_adapter, ctx, card_id=card_id,
                                       session_id=session_id)


@mcp.tool()
async def set_order_notes(ctx: Context, notes: str, session_id: Optional[str] = None) -> str:
    """Attach notes for the seller to the order."""
    return await handle_tool_execution("set_order_notes", order_notes_adapter, ctx, notes=notes,
                                       session_id=session_id)


@mcp.tool()
async def place_order(ctx: Context, session_id: Optional[str] = None) -> str:
    """Create and confirm the payment for the active checkout.

    Only items supporting the selected delivery method are ordered.
    """
    return await handle_tool_execution("place_order", place_order_adapter, ctx, session_id=session_id)


@mcp.tool()
async def get_payment_status(ctx: Context, payment_intent_id: str, session_id: Optional[str] = None) -> str:
    """Status of a payment intent."""
    return await handle_tool_execution("get_payment_status", payment_status_adapter, ctx,
                                       payment_intent_id=payment_intent_id, session_id=session_id)


@mcp.tool()
async def cancel_payment(ctx: Context, payment_intent_id: str, order_id: str,
                         session_id: Optional[str] = None) -> str:
    """Cancel a payment intent for an order."""
    return await handle_tool_execution("cancel_payment", cancel_payment_adapter, ctx,
                                       payment_intent_id=payment_intent_id, order_id=order_id,
                                       session_id=session_id)


@mcp.tool()
async def retry_payment(ctx: Context, payment_intent_id: str, payment_method_id: str,
                        session_id: Optional[str] = None) -> str:
    """Retry a failed payment with a different payment method."""
    return await handle_tool_execution("retry_payment", retry_payment_adapter, ctx,
                                       payment_intent_id=payment_intent_id, payment_method_id=payment_method_id,
                                       session_id=session_id)


# ============================================================================
# ORDERS - FastMCP Tools
# ============================================================================

@mcp.tool()
async def get_my_orders(ctx: Context, status: Optional[str] = None, search: Optional[str] = None,
                        page: int = 1, limit: int = 10, sort: Optional[str] = None,
                        start_date: Optional[str] = None, end_date: Optional[str] = None,
                        session_id: Optional[str] = None) -> str:
    """The signed-in buyer's orders, filtered by status, search text or date range."""
    return await handle_tool_execution("get_my_orders", orders_list_adapter, ctx, status=status, search=search,
                                       page=page, limit=limit, sort=sort, start_date=start_date,
                                       end_date=end_date, session_id=session_id)


@mcp.tool()
async def get_order(ctx: Context, order_id: Optional[str] = None, order_number: Optional[str] = None,
                    session_id: Optional[str] = None) -> str:
    """One order by id or order number."""
    return await handle_tool_execution("get_order", order_get_adapter, ctx, order_id=order_id,
                                       order_number=order_number, session_id=session_id)


@mcp.tool()
async def get_order_tracking(ctx: Context, order_id: str, session_id: Optional[str] = None) -> str:
    """Status history of an order."""
    return await handle_tool_execution("get_order_tracking", order_tracking_adapter, ctx, order_id=order_id,
                                       session_id=session_id)


@mcp.tool()
async def cancel_order(ctx: Context, order_id: str, reason: str, session_id: Optional[str] = None) -> str:
    """Cancel an order. A reason is required."""
    return await handle_tool_execution("cancel_order", order_cancel_adapter, ctx, order_id=order_id,
                                       reason=reason, session_id=session_id)


# ============================================================================
# NAVIGATION - FastMCP Tools
# ============================================================================

@mcp.tool()
async def navigate(ctx: Context, path: str, session_id: Optional[str] = None) -> str:
    """Move to another page. Blocked while a payment is processing."""
    return await handle_tool_execution("navigate", navigate_adapter, ctx, path=path, session_id=session_id)


@mcp.tool()
async def go_back(ctx: Context, session_id: Optional[str] = None) -> str:
    """Go back one page. Undone while a payment is processing."""
    return await handle_tool_execution("go_back", go_back_adapter, ctx, session_id=session_id)


@mcp.tool()
async def get_navigation_state(ctx: Context, session_id: Optional[str] = None) -> str:
    """Current page and whether leaving would prompt."""
    return await handle_tool_execution("get_navigation_state", navigation_state_adapter, ctx,
                                       session_id=session_id)


# ============================================================================
# WISHLIST - FastMCP Tools
# ============================================================================

@mcp.tool()
async def view_wishlist(ctx: Context, session_id: Optional[str] = None) -> str:
    """List wishlist items."""
    return await handle_tool_execution("view_wishlist", wishlist_view_adapter, ctx, session_id=session_id)


@mcp.tool()
async def add_to_wishlist(ctx: Context, product_id: str, notification_enabled: bool = False,
                          price_alert: Optional[Dict[str, Any]] = None, session_id: Optional[str] = None) -> str:
    """Add a product to the wishlist, optionally with a price alert."""
    return await handle_tool_execution("add_to_wishlist", wishlist_add_adapter, ctx, product_id=product_id,
                                       notification_enabled=notification_enabled, price_alert=price_alert,
                                       session_id=session_id)


@mcp.tool()
async def remove_from_wishlist(ctx: Context, product_id: str, session_id: Optional[str] = None) -> str:
    """Remove a product from the wishlist."""
    return await handle_tool_execution("remove_from_wishlist", wishlist_remove_adapter, ctx,
                                       product_id=product_id, session_id=session_id)


@mcp.tool()
async def toggle_wishlist(ctx: Context, product_id: str, session_id: Optional[str] = None) -> str:
    """Add the product if it is not wishlisted, otherwise remove it."""
    return await handle_tool_execution("toggle_wishlist", wishlist_toggle_adapter, ctx, product_id=product_id,
                                       session_id=session_id)


@mcp.tool()
async def update_wishlist_item(ctx: Context, product_id: str, notification_enabled: Optional[bool] = None,
                               price_alert: Optional[Dict[str, Any]] = None,
                               session_id: Optional[str] = None) -> str:
    """Change notification or price-alert settings of a wishlist item."""
    return await handle_tool_execution("update_wishlist_item", wishlist_update_adapter, ctx,
                                       product_id=product_id, notification_enabled=notification_enabled,
                                       price_alert=price_alert, session_id=session_id)


@mcp.tool()
async def clear_wishlist(ctx: Context, session_id: Optional[str] = None) -> str:
    """Remove every wishlist item."""
    return await handle_tool_execution("clear_wishlist", wishlist_clear_adapter, ctx, session_id=session_id)


@mcp.tool()
async def check_wishlist(ctx: Context, product_ids: List[str], session_id: Optional[str] = None) -> str:
    """Whether each product is in the wishlist."""
    return await handle_tool_execution("check_wishlist", wishlist_check_adapter, ctx, product_ids=product_ids,
                                       session_id=session_id)


@mcp.tool()
async def get_wishlist_count(ctx: Context, session_id: Optional[str] = None) -> str:
    """Number of wishlist items."""
    return await handle_tool_execution("get_wishlist_count", wishlist_count_adapter, ctx, session_id=session_id)


# ============================================================================
# PROFILE - FastMCP Tools
# ============================================================================

@mcp.tool()
async def list_cards(ctx: Context, session_id: Optional[str] = None) -> str:
    """List saved payment cards."""
    return await handle_tool_execution("list_cards", cards_list_adapter, ctx, session_id=session_id)


@mcp.tool()
async def add_card(ctx: Context, card_number: str, expiry_month: int, expiry_year: int, cvv: str,
                   cardholder_name: str, is_default: bool = False, session_id: Optional[str] = None) -> str:
    """Save a payment card."""
    return await handle_tool_execution("add_card", card_add_adapter, ctx, card_number=card_number,
                                       expiry_month=expiry_month, expiry_year=expiry_year, cvv=cvv,
                                       cardholder_name=cardholder_name, is_default=is_default,
                                       session_id=session_id)


@mcp.tool()
async def update_card(ctx: Context, card_id: str, cardholder_name: str, session_id: Optional[str] = None) -> str:
    """Change the cardholder name of a saved card."""
    return await handle_tool_execution("update_card", card_update_adapter, ctx, card_id=card_id,
                                       cardholder_name=cardholder_name, session_id=session_id)


@mcp.tool()
async def set_default_card(ctx: Context, card_id: str, session_id: Optional[str] = None) -> str:
    """Make a saved card the default."""
    return await handle_tool_execution("set_default_card", card_default_adapter, ctx, card_id=card_id,
                                       session_id=session_id)


@mcp.tool()
async def remove_card(ctx: Context, card_id: str, session_id: Optional[str] = None) -> str:
    """Delete a saved card."""
    return await handle_tool_execution("remove_card", card_remove_adapter, ctx, card_id=card_id,
                                       session_id=session_id)


@mcp.tool()
async def list_bank_accounts(ctx: Context, session_id: Optional[str] = None) -> str:
    """List payout bank accounts."""
    return await handle_tool_execution("list_bank_accounts", bank_list_adapter, ctx, session_id=session_id)


@mcp.tool()
async def add_bank_account(ctx: Context, account: Dict[str, Any], session_id: Optional[str] = None) -> str:
    """Add a payout bank account.

    `account`: accountHolderName, bankName, accountNumber, routingNumber,
    swiftCode?, accountType (checking | savings | current), isDefault?
    """
    return await handle_tool_execution("add_bank_account", bank_add_adapter, ctx, account=account,
                                       session_id=session_id)


@mcp.tool()
async def set_default_bank_account(ctx: Context, account_id: str, session_id: Optional[str] = None) -> str:
    """Make a bank account the default payout account."""
    return await handle_tool_execution("set_default_bank_account", bank_default_adapter, ctx,
                                       account_id=account_id, session_id=session_id)


@mcp.tool()
async def remove_bank_account(ctx: Context, account_id: str, session_id: Optional[str] = None) -> str:
    """Delete a bank account."""
    return await handle_tool_execution("remove_bank_account", bank_remove_adapter, ctx, account_id=account_id,
                                       session_id=session_id)


@mcp.tool()
async def list_addresses(ctx: Context, session_id: Optional[str] = None) -> str:
    """List saved addresses."""
    return await handle_tool_execution("list_addresses", address_list_adapter, ctx, session_id=session_id)


@mcp.tool()
async def add_address(ctx: Context, address: Dict[str, Any], session_id: Optional[str] = None) -> str:
    """Save an address (name, phone, street, city, state, zipCode, country, isDefault?)."""
    return await handle_tool_execution("add_address", address_add_adapter, ctx, address=address,
                                       session_id=session_id)


@mcp.tool()
async def update_address(ctx: Context, address_id: str, address: Dict[str, Any],
                         session_id: Optional[str] = None) -> str:
    """Edit a saved address."""
    return await handle_tool_execution("update_address", address_update_adapter, ctx, address_id=address_id,
                                       address=address, session_id=session_id)


@mcp.tool()
async def set_default_address(ctx: Context, address_id: str, session_id: Optional[str] = None) -> str:
    """Make a saved address the default."""
    return await handle_tool_execution("set_default_address", address_default_adapter, ctx,
                                       address_id=address_id, session_id=session_id)


@mcp.tool()
async def remove_address(ctx: Context, address_id: str, session_id: Optional[str] = None) -> str:
    """Delete a saved address."""
    return await handle_tool_execution("remove_address", address_remove_adapter, ctx, address_id=address_id,
                                       session_id=session_id)


@mcp.tool()
async def save_cms_content(ctx: Context, content_type: str, content: str, title: str = "",
                           is_active: bool = True, session_id: Optional[str] = None) -> str:
    """Create or replace a seller page (terms_conditions | privacy_policy | about_us)."""
    return await handle_tool_execution("save_cms_content", cms_save_adapter, ctx, content_type=content_type,
                                       title=title, content=content, is_active=is_active, session_id=session_id)


@mcp.tool()
async def get_cms_content(ctx: Context, content_type: Optional[str] = None, seller_id: Optional[str] = None,
                          session_id: Optional[str] = None) -> str:
    """Read the seller's own pages, or a seller's public pages when seller_id is given."""
    return await handle_tool_execution("get_cms_content", cms_get_adapter, ctx, content_type=content_type,
                                       seller_id=seller_id, session_id=session_id)


@mcp.tool()
async def delete_cms_content(ctx: Context, content_type: str, session_id: Optional[str] = None) -> str:
    """Delete a seller page."""
    return await handle_tool_execution("delete_cms_content", cms_delete_adapter, ctx, content_type=content_type,
                                       session_id=session_id)


@mcp.tool()
async def upload_file(ctx: Context, filename: str, content_base64: str, mime_type: Optional[str] = None,
                      session_id: Optional[str] = None) -> str:
    """Upload a file (base64 content) and return its URL."""
    return await handle_tool_execution("upload_file", upload_adapter, ctx, filename=filename,
                                       content_base64=content_base64, mime_type=mime_type, session_id=session_id)


# ============================================================================
# RESOURCES
# ============================================================================

@mcp.resource("marketplace://state")
async def get_state_resource() -> str:
    """Signed-in user, cart size and payment flag"""
    app = get_app()
    return json.dumps({
        "user": app.store.user.to_dict() if app.store.user else None,
        "is_authenticated": app.store.is_authenticated,
        "cart": app.store.cart.get_cart_summary(),
        "is_processing_payment": app.store.is_processing_payment,
        "current_path": app.navigation.current_path,
    }, indent=2, default=str)


# ============================================================================
# MAIN SERVER RUNNER
# ============================================================================

def main():
    """Main entry point with logging and configuration checks"""
    try:
        config.configure_logging()

        if not config.validate():
            raise ValueError("Invalid configuration. Please check your .env file.")

        logger.info("=" * 60)
        logger.info("Marketplace Shopping MCP Server - Official FastMCP Implementation")
        logger.info("=" * 60)
        logger.info("Server Name: marketplace-shopping")
        logger.info(f"Backend: {config.api.backend_endpoint}")
        logger.info(f"Client store: {config.storage.store_type}")
        logger.info("=" * 60)
        logger.debug(f"Configuration: {config.to_dict()}")

        get_app()

        # Run the FastMCP server (handles its own event loop)
        mcp.run()

    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("MCP Server startup FAILED!")
        logger.error(f"Error details: {e}")
        raise


if __name__ == "__main__":
    main()
