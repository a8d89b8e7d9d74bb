"""
Application state container

Owns auth state, the persisted cart, the active checkout session and the
payment-processing flag. It is created once by the server entry point,
``init()`` restores persisted state and ``teardown()`` releases it.
"""

from typing import Any, Callable, List, Optional

from .client_storage import (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    USER_KEY,
    ClientStorage
)
from .models.auth import AuthTokens, User
from .services.cart_service import CartService
from .utils.logger import get_logger

logger = get_logger(__name__)


class Disposable:
    """Handle returned by a registration; ``dispose()`` undoes it once"""

    def __init__(self, on_dispose: Callable[[], None]):
        self._on_dispose = on_dispose
        self.disposed = False

    def dispose(self):
        if self.disposed:
            return
        self.disposed = True
        self._on_dispose()


class AppStore:
    """Explicitly owned application state"""

    def __init__(self, storage: ClientStorage, cart_service: Optional[CartService] = None):
        self.storage = storage
        self.cart = cart_service or CartService(storage)
        self.user: Optional[User] = None
        self.is_authenticated = False
        self.checkout_session: Optional[Any] = None
        self.initialized = False
        self._processing_payment = False
        self._processing_listeners: List[Callable[[bool], None]] = []

    # ================================
    # LIFECYCLE
    # ================================

    def init(self) -> "AppStore":
        """Restore persisted tokens, user and cart"""
        self.cart.load()

        stored_user = self.storage.local.get_json(USER_KEY)
        self.user = User.from_dict(stored_user) if isinstance(stored_user, dict) else None
        self.is_authenticated = bool(self.access_token and self.user)

        self.initialized = True
        logger.info(f"[AppStore] Initialized (authenticated={self.is_authenticated}, "
                    f"cart_lines={self.cart.cart.item_count})")
        return self

    def teardown(self):
        """Release state held for the running process"""
        self._processing_listeners.clear()
        self._processing_payment = False
        self.checkout_session = None
        self.user = None
        self.is_authenticated = False
        self.initialized = False
        logger.info("[AppStore] Torn down")

    # ================================
    # AUTH
    # ================================

    @property
    def access_token(self) -> Optional[str]:
        return self.storage.local.get_item(ACCESS_TOKEN_KEY)

    @property
    def refresh_token(self) -> Optional[str]:
        return self.storage.local.get_item(REFRESH_TOKEN_KEY)

    def set_tokens(self, tokens: Optional[AuthTokens]):
        if tokens is None:
            return
        self.storage.local.set_item(ACCESS_TOKEN_KEY, tokens.access_token)
        if tokens.refresh_token:
            self.storage.local.set_item(REFRESH_TOKEN_KEY, tokens.refresh_token)

    def set_user(self, user: User):
        self.user = user
        self.is_authenticated = True
        self.storage.local.set_json(USER_KEY, user.to_dict())
        logger.info(f"[AppStore] User set: {user.email} ({user.role})")

    def set_auth(self, user: User, tokens: Optional[AuthTokens] = None):
        self.set_tokens(tokens)
        self.set_user(user)

    def clear_auth(self):
        """Forget the user and remove tokens from storage"""
        for key in (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY):
            self.storage.local.remove_item(key)
        self.user = None
        self.is_authenticated = False
        logger.info("[AppStore] Auth cleared")

    # ================================
    # PAYMENT PROCESSING FLAG
    # ================================

    @property
    def is_processing_payment(self) -> bool:
        return self._processing_payment

    def set_processing_payment(self, value: bool):
        """Update the flag and notify subscribers when it changes"""
        value = bool(value)
        if value == self._processing_payment:
            return
        self._processing_payment = value
        logger.debug(f"[AppStore] is_processing_payment={value}")
        for listener in list(self._processing_listeners):
            listener(value)

    def subscribe_processing(self, listener: Callable[[bool], None]) -> Disposable:
        self._processing_listeners.append(listener)

        def _remove():
            if listener in self._processing_listeners:
                self._processing_listeners.remove(listener)

        return Disposable(_remove)
