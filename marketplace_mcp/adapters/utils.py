"""Shared utilities for MCP adapters"""

from typing import Any, Dict, Optional

from ..app_state import AppStore
from ..client_storage import ClientStorage, create_client_storage
from ..config import config
from ..marketplace_backend_client import MarketplaceBackendClient
from ..models.result import Result
from ..services.address_service import AddressService
from ..services.auth_service import AuthService
from ..services.bank_account_service import BankAccountService
from ..services.card_service import CardService
from ..services.checkout_service import CheckoutService
from ..services.cms_service import CmsService
from ..services.file_service import FileService
from ..services.order_service import OrderService
from ..services.otp_service import OtpService
from ..services.payment_guard import InMemoryNavigationHost, NavigationHost, PaymentNavigationGuard
from ..services.product_service import ProductService
from ..services.wishlist_service import WishlistService
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier

logger = get_logger(__name__)


class MarketplaceApp:
    """Everything one running client owns: storage, state, services, navigation.

    The server process holds a single instance. MCP session ids label
    responses and log lines; they do not partition state.
    """

    def __init__(self, storage: Optional[ClientStorage] = None,
                 backend: Optional[MarketplaceBackendClient] = None,
                 navigation: Optional[NavigationHost] = None,
                 notifier: Optional[ToastNotifier] = None):
        self.storage = storage or create_client_storage(config.storage)
        self.store = AppStore(self.storage)
        self.notifier = notifier or ToastNotifier()
        self.backend = backend or MarketplaceBackendClient(token_provider=lambda: self.store.access_token)
        if backend is not None and backend.token_provider() is None:
            backend.token_provider = lambda: self.store.access_token

        self.otp = OtpService(self.backend, self.store, self.notifier)
        self.auth = AuthService(self.backend, self.store, self.notifier, self.otp)
        self.checkout = CheckoutService(self.backend, self.store, self.notifier)
        self.products = ProductService(self.backend)
        self.orders = OrderService(self.backend, self.notifier)
        self.wishlist = WishlistService(self.backend, self.notifier)
        self.cards = CardService(self.backend, self.notifier)
        self.bank_accounts = BankAccountService(self.backend, self.notifier)
        self.addresses = AddressService(self.backend, self.notifier)
        self.cms = CmsService(self.backend, self.notifier)
        self.files = FileService(self.backend)

        self.navigation = navigation or InMemoryNavigationHost()
        self.payment_guard = PaymentNavigationGuard(self.store, self.navigation)
        self._guard_handle = None

    def init(self) -> "MarketplaceApp":
        self.store.init()
        self._guard_handle = self.payment_guard.attach()
        logger.info("[App] Marketplace client ready")
        return self

    def teardown(self):
        if self._guard_handle is not None:
            self._guard_handle.dispose()
            self._guard_handle = None
        self.store.teardown()
        self.notifier.clear()
        logger.info("[App] Marketplace client torn down")


_app: Optional[MarketplaceApp] = None


def get_app() -> MarketplaceApp:
    """Get the process-wide client, creating and initializing it on first use"""
    global _app
    if _app is None:
        _app = MarketplaceApp().init()
    return _app


def set_app(app: Optional[MarketplaceApp]):
    """Replace the process-wide client (tests inject one backed by fakes)"""
    global _app
    if _app is not None and _app is not app:
        _app.teardown()
    _app = app


def extract_session_id(session_param: Any) -> Optional[str]:
    """Extract session_id from MCP session parameter

    MCP sends session as either:
    - A dictionary with session_id key
    - A session_id string
    - None/empty
    """
    if session_param is None:
        return None

    if isinstance(session_param, str):
        return session_param

    if isinstance(session_param, dict):
        return session_param.get('session_id')

    return None


def format_mcp_response(success: bool, message: str, session_id: Optional[str],
                        **extra_data) -> Dict[str, Any]:
    """Format response for MCP protocol

    MCP expects responses with:
    - success: bool
    - message: str
    - session: dict (for session persistence)
    - Additional data fields
    """
    response = {
        'success': success,
        'message': message,
        'session': {'session_id': session_id}
    }
    response.update(extra_data)

    if not success:
        logger.error(f"[MCP Error] {message}")

    return response


def respond(app: MarketplaceApp, success: bool, message: str, session_id: Optional[str],
            **extra_data) -> Dict[str, Any]:
    """Standard response carrying the toasts raised during the call"""
    toasts = [{'level': toast.level, 'message': toast.message} for toast in app.notifier.history()]
    app.notifier.clear()
    return format_mcp_response(success, message, session_id, toasts=toasts, **extra_data)


def respond_result(app: MarketplaceApp, result: Result, session_id: Optional[str],
                   success_message: str, key: str = 'data', convert=None) -> Dict[str, Any]:
    """Turn an Ok/Err into the standard response"""
    if not result.is_ok:
        return respond(app, False, result.message, session_id)
    value = result.value
    if convert is not None:
        value = convert(value)
    return respond(app, True, success_message, session_id, **{key: value})
