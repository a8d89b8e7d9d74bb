"""
Marketplace Backend Client

Async client for the marketplace REST backend: authentication, OTP,
product listings, checkout and payment intents, buyer orders, wishlist,
saved cards, bank accounts, addresses, seller CMS pages and file uploads.

Every call returns the parsed JSON body. Non-2xx responses raise
BackendResponseError and transport failures raise BackendConnectionError,
so callers decide how each failure is shown to the user.
"""

import httpx
import json
import shlex
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from .config import config
from .protocol.errors import BackendConnectionError, BackendResponseError
from .utils.logger import get_logger, mask_sensitive

logger = get_logger(__name__)


class MarketplaceBackendClient:
    """Client for all marketplace backend APIs"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout: Optional[float] = None,
        debug_curl: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the backend client

        Args:
            base_url: Base URL of the REST API (defaults to BACKEND_ENDPOINT)
            token_provider: Callable returning the current access token
            timeout: Request timeout in seconds
            debug_curl: Enable CURL command logging for debugging
            transport: Optional httpx transport (used to fake the backend)
        """
        self.base_url = (base_url or config.api.backend_endpoint or "").rstrip("/")
        if not self.base_url:
            raise ValueError("BACKEND_ENDPOINT environment variable or base_url parameter is required")

        self.token_provider = token_provider or (lambda: None)
        self.debug_curl = config.api.debug_curl if debug_curl is None else debug_curl
        self.timeout = httpx.Timeout(timeout or config.api.timeout)
        self.limits = httpx.Limits(max_keepalive_connections=5, max_connections=10)
        self.transport = transport

        logger.info(f"MarketplaceBackendClient initialized with base_url: {self.base_url}")
        if self.debug_curl:
            logger.info("CURL logging enabled for API calls")

    def _generate_curl_command(self, method: str, url: str, headers: Dict,
                               params: Optional[Dict], json_data: Optional[Dict]) -> str:
        """Generate curl command for debugging"""
        curl_parts = ['curl', '-X', method.upper()]

        for key, value in headers.items():
            if key.lower() == 'authorization':
                value = 'Bearer ***'
            curl_parts.extend(['-H', shlex.quote(f'{key}: {value}')])

        if json_data:
            body = json.dumps(mask_sensitive(json_data), separators=(',', ':'))
            curl_parts.extend(['-d', shlex.quote(body)])

        if params:
            url = f"{url}?{urlencode(params)}"

        curl_parts.append(shlex.quote(url))
        return ' '.join(curl_parts)

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json_data: Optional[Dict] = None,
        files: Optional[Dict[str, Tuple[str, bytes, str]]] = None,
        require_auth: bool = True
    ) -> Dict[str, Any]:
        """Make HTTP request to the marketplace backend"""
        url = f"{self.base_url}{endpoint}"

        request_headers = {"Accept": "application/json"}
        if files is None:
            request_headers["Content-Type"] = "application/json"

        token = self.token_provider()
        if token:
            request_headers["Authorization"] = f"Bearer {token}"
        elif require_auth:
            logger.warning(f"Auth required for {endpoint} but no token available")

        if self.debug_curl:
            curl_cmd = self._generate_curl_command(method, url, request_headers, params, json_data)
            logger.info(f"CURL: {curl_cmd}")

        logger.info(f"[REQUEST] {method.upper()} {url}")
        if json_data:
            logger.debug(f"[REQUEST] Body: {json.dumps(mask_sensitive(json_data), default=str)}")
        if params:
            logger.debug(f"[REQUEST] Params: {params}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, limits=self.limits,
                                         transport=self.transport) as client:
                response = await client.request(
                    method=method.upper(),
                    url=url,
                    params=params,
                    json=json_data,
                    files=files,
                    headers=request_headers
                )
        except httpx.RequestError as e:
            logger.error(f"Network/connection error for {endpoint}: {e}. Check backend availability and network connectivity.")
            raise BackendConnectionError(endpoint, str(e)) from e

        logger.info(f"[RESPONSE] {method.upper()} {endpoint} -> {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_success:
            if body is None:
                return {"success": True, "data": response.text}
            return body

        if response.status_code == 401:
            logger.error(f"Unauthorized access to {endpoint}. Access token missing or expired.")
        elif response.status_code == 404:
            logger.warning(f"HTTP 404 for {endpoint}: Endpoint not found or resource unavailable.")
        else:
            logger.error(f"HTTP {response.status_code} for {endpoint}: {response.text[:500]}")

        raise BackendResponseError(
            endpoint,
            response.status_code,
            body if isinstance(body, dict) else {"message": response.text} if response.text else {}
        )

    # ================================
    # AUTHENTICATION APIs
    # ================================

    async def register(self, payload: Dict) -> Dict:
        return await self._make_request("POST", "/auth/register", json_data=payload, require_auth=False)

    async def login(self, email: str, password: str) -> Dict:
        return await self._make_request("POST", "/auth/login", json_data={"email": email, "password": password},
                                        require_auth=False)

    async def logout(self) -> Dict:
        return await self._make_request("POST", "/auth/logout")

    async def get_me(self) -> Dict:
        """Current user profile"""
        return await self._make_request("GET", "/auth/me")

    async def refresh_token(self, refresh_token: str) -> Dict:
        return await self._make_request("POST", "/auth/refresh", json_data={"refresh_token": refresh_token},
                                        require_auth=False)

    async def forgot_password(self, email: str) -> Dict:
        return await self._make_request("POST", "/auth/forgot-password", json_data={"email": email},
                                        require_auth=False)

    async def verify_reset_token(self, token: str) -> Dict:
        return await self._make_request("POST", "/auth/verify-reset-token", json_data={"token": token},
                                        require_auth=False)

    async def reset_password(self, token: str, password: str) -> Dict:
        return await self._make_request("POST", "/auth/reset-password",
                                        json_data={"token": token, "password": password}, require_auth=False)

    async def change_password(self, current_password: str, new_password: str) -> Dict:
        return await self._make_request("POST", "/auth/change-password", json_data={
            "currentPassword": current_password,
            "newPassword": new_password
        })

    async def complete_google_signup(self, payload: Dict) -> Dict:
        return await self._make_request("POST", "/auth/complete-google-signup", json_data=payload,
                                        require_auth=False)

    # ================================
    # OTP APIs
    # ================================

    async def create_otp(self, email: str, otp_type: str = "UR") -> Dict:
        return await self._make_request("POST", "/otp/create", json_data={"email": email, "type": otp_type},
                                        require_auth=False)

    async def verify_otp(self, email: str, otp: str, otp_type: str = "UR") -> Dict:
        return await self._make_request("POST", "/otp/verify",
                                        json_data={"email": email, "otp": otp, "type": otp_type},
                                        require_auth=False)

    async def resend_otp(self, email: str, otp_type: str = "UR") -> Dict:
        return await self._make_request("POST", "/otp/resend", json_data={"email": email, "type": otp_type},
                                        require_auth=False)

    # ================================
    # CHECKOUT & PAYMENT APIs
    # ================================

    async def create_payment_intent(self, checkout_data: Dict) -> Dict:
        return await self._make_request("POST", "/checkout/create-payment-intent", json_data=checkout_data)

    async def confirm_payment(self, payment_intent_id: str, order_id: str) -> Dict:
        return await self._make_request("POST", "/checkout/confirm-payment", json_data={
            "paymentIntentId": payment_intent_id,
            "orderId": order_id
        })

    async def cancel_payment(self, payment_intent_id: str, order_id: str) -> Dict:
        return await self._make_request("POST", "/checkout/cancel-payment", json_data={
            "paymentIntentId": payment_intent_id,
            "orderId": order_id
        })

    async def get_payment_status(self, payment_intent_id: str) -> Dict:
        return await self._make_request("GET", f"/checkout/payment-status/{payment_intent_id}")

    async def retry_payment(self, payment_intent_id: str, payment_method_id: str) -> Dict:
        return await self._make_request("POST", "/checkout/retry-payment", json_data={
            "paymentIntentId": payment_intent_id,
            "paymentMethodId": payment_method_id
        })

    # ================================
    # PRODUCT APIs
    # ================================

    async def get_products(self, params: Optional[Dict] = None) -> Dict:
        """Marketplace listing (page, limit, category, search)"""
        return await self._make_request("GET", "/products", params=params, require_auth=False)

    async def get_product_by_slug(self, slug: str) -> Dict:
        return await self._make_request("GET", f"/products/{slug}", require_auth=False)

    async def get_product_by_id(self, product_id: str) -> Dict:
        return await self._make_request("GET", f"/products/id/{product_id}", require_auth=False)

    # ================================
    # ORDER APIs
    # ================================

    async def get_my_orders(self, params: Optional[Dict] = None) -> Dict:
        return await self._make_request("GET", "/orders/my-orders", params=params)

    async def get_order(self, order_id: str) -> Dict:
        return await self._make_request("GET", f"/orders/{order_id}")

    async def get_order_by_number(self, order_number: str) -> Dict:
        return await self._make_request("GET", f"/orders/number/{order_number}")

    async def cancel_order(self, order_id: str, reason: str) -> Dict:
        return await self._make_request("PATCH", f"/orders/{order_id}/cancel", json_data={"reason": reason})

    async def get_order_tracking(self, order_id: str) -> Dict:
        return await self._make_request("GET", f"/orders/{order_id}/tracking")

    # ================================
    # WISHLIST APIs
    # ================================

    async def get_wishlist(self) -> Dict:
        return await self._make_request("GET", "/wishlists")

    async def add_to_wishlist(self, payload: Dict) -> Dict:
        return await self._make_request("POST", "/wishlists/add", json_data=payload)

    async def remove_from_wishlist(self, product_id: str) -> Dict:
        return await self._make_request("POST", "/wishlists/remove", json_data={"productId": product_id})

    async def update_wishlist_item(self, payload: Dict) -> Dict:
        return await self._make_request("PATCH", "/wishlists/update", json_data=payload)

    async def clear_wishlist(self) -> Dict:
        return await self._make_request("DELETE", "/wishlists/clear")

    async def check_wishlist(self, product_id: str) -> Dict:
        return await self._make_request("GET", f"/wishlists/check/{product_id}")

    async def get_wishlist_count(self) -> Dict:
        return await self._make_request("GET", "/wishlists/count")

    async def batch_check_wishlist(self, product_ids: List[str]) -> Dict:
        return await self._make_request("POST", "/wishlists/batch-check", json_data={"productIds": product_ids})

    # ================================
    # SAVED CARD APIs
    # ================================

    async def get_cards(self) -> Dict:
        return await self._make_request("GET", "/user/cards")

    async def create_card(self, payload: Dict) -> Dict:
        return await self._make_request("POST", "/user/cards", json_data=payload)

    async def update_card(self, card_id: str, payload: Dict) -> Dict:
        return await self._make_request("PUT", f"/user/cards/{card_id}", json_data=payload)

    async def set_default_card(self, card_id: str) -> Dict:
        return await self._make_request("PUT", f"/user/cards/{card_id}/default")

    async def delete_card(self, card_id: str) -> Dict:
        return await self._make_request("DELETE", f"/user/cards/{card_id}")

    # ================================
    # BANK ACCOUNT APIs
    # ================================

    async def get_bank_accounts(self) -> Dict:
        return await self._make_request("GET", "/bank-accounts")

    async def get_bank_account(self, account_id: str) -> Dict:
        return await self._make_request("GET", f"/bank-accounts/{account_id}")

    async def create_bank_account(self, payload: Dict) -> Dict:
        return await self._make_request("POST", "/bank-accounts", json_data=payload)

    async def set_default_bank_account(self, account_id: str, payload: Optional[Dict] = None) -> Dict:
        return await self._make_request("PATCH", f"/bank-accounts/{account_id}/set-default",
                                        json_data=payload or {})

    async def delete_bank_account(self, account_id: str) -> Dict:
        return await self._make_request("DELETE", f"/bank-accounts/{account_id}")

    # ================================
    # ADDRESS APIs
    # ================================

    async def get_addresses(self) -> Dict:
        return await self._make_request("GET", "/addresses")

    async def get_default_address(self) -> Dict:
        return await self._make_request("GET", "/addresses/default")

    async def create_address(self, payload: Dict) -> Dict:
        return await self._make_request("POST", "/addresses", json_data=payload)

    async def update_address(self, address_id: str, payload: Dict) -> Dict:
        return await self._make_request("PUT", f"/addresses/{address_id}", json_data=payload)

    async def set_default_address(self, address_id: str) -> Dict:
        return await self._make_request("POST", f"/addresses/{address_id}/set-default")

    async def delete_address(self, address_id: str) -> Dict:
        return await self._make_request("DELETE", f"/addresses/{address_id}")

    # ================================
    # CMS APIs
    # ================================

    async def save_cms_content(self, payload: Dict) -> Dict:
        """Create or update a seller CMS page"""
        return await self._make_request("POST", "/cms/manage", json_data=payload)

    async def get_all_cms_content(self) -> Dict:
        return await self._make_request("GET", "/cms/manage")

    async def get_cms_content(self, content_type: str) -> Dict:
        return await self._make_request("GET", f"/cms/manage/{content_type}")

    async def update_cms_content(self, content_type: str, payload: Dict) -> Dict:
        return await self._make_request("PUT", f"/cms/manage/{content_type}", json_data=payload)

    async def delete_cms_content(self, content_type: str) -> Dict:
        return await self._make_request("DELETE", f"/cms/manage/{content_type}")

    async def get_public_cms_content(self, seller_id: str, content_type: Optional[str] = None) -> Dict:
        endpoint = f"/cms/public/{seller_id}/{content_type}" if content_type else f"/cms/public/{seller_id}"
        return await self._make_request("GET", endpoint, require_auth=False)

    # ================================
    # FILE UPLOAD APIs
    # ================================

    async def upload_file(self, filename: str, content: bytes, mime_type: str) -> Dict:
        return await self._make_request("POST", "/upload", files={"file": (filename, content, mime_type)})


def unwrap_data(response: Optional[Dict[str, Any]], default: Any = None) -> Any:
    """Return the ``data`` envelope of a backend response"""
    if not isinstance(response, dict):
        return default
    data = response.get("data")
    return default if data is None else data
