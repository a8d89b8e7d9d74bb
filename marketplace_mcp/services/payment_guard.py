"""
In-flight payment navigation guard

While a payment is being processed the guard blocks in-app navigation
(unless the user confirms), asks for confirmation on unload, and undoes
back-navigation. The guard depends only on the NavigationHost capability,
so any shell that can block navigation can host checkout.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from ..app_state import AppStore, Disposable
from ..utils.logger import get_logger

logger = get_logger(__name__)

LEAVE_CONFIRM_MESSAGE = (
    "Payment is being processed. Are you sure you want to leave? "
    "Leaving now may leave your order in an incomplete state."
)
BACK_ALERT_MESSAGE = "Payment is being processed. Please wait until it completes before going back."

BEFORE_UNLOAD = "beforeunload"
POP_STATE = "popstate"


@dataclass
class LeaveAttempt:
    from_path: str
    to_path: str


class NavigationEvent:
    """Event passed to beforeunload and popstate listeners"""

    def __init__(self, event_type: str):
        self.type = event_type
        self.default_prevented = False
        self.return_value: Optional[str] = None

    def prevent_default(self):
        self.default_prevented = True


class NavigationHost(Protocol):
    """What the hosting shell must provide for checkout to block navigation"""

    @property
    def current_path(self) -> str: ...

    def on_before_leave(self, predicate: Callable[[LeaveAttempt], bool]) -> Disposable: ...

    def add_listener(self, event_type: str, handler: Callable[[NavigationEvent], None]) -> Disposable: ...

    def push_state(self, path: str): ...

    def confirm(self, message: str) -> bool: ...

    def alert(self, message: str): ...


class InMemoryNavigationHost:
    """History-stack navigation host for the MCP server and tests"""

    def __init__(self, initial_path: str = "/", confirm_handler: Optional[Callable[[str], bool]] = None):
        self.history: List[str] = [initial_path]
        self.index = 0
        self.confirm_handler = confirm_handler or (lambda message: False)
        self.alerts: List[str] = []
        self.confirmations: List[str] = []
        self._blockers: List[Callable[[LeaveAttempt], bool]] = []
        self._listeners: Dict[str, List[Callable[[NavigationEvent], None]]] = {
            BEFORE_UNLOAD: [],
            POP_STATE: [],
        }

    @property
    def current_path(self) -> str:
        return self.history[self.index]

    def on_before_leave(self, predicate: Callable[[LeaveAttempt], bool]) -> Disposable:
        self._blockers.append(predicate)
        return Disposable(lambda: self._blockers.remove(predicate) if predicate in self._blockers else None)

    def add_listener(self, event_type: str, handler: Callable[[NavigationEvent], None]) -> Disposable:
        handlers = self._listeners.setdefault(event_type, [])
        handlers.append(handler)
        return Disposable(lambda: handlers.remove(handler) if handler in handlers else None)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    @property
    def blocker_count(self) -> int:
        return len(self._blockers)

    def push_state(self, path: str):
        del self.history[self.index + 1:]
        self.history.append(path)
        self.index += 1

    def confirm(self, message: str) -> bool:
        self.confirmations.append(message)
        return bool(self.confirm_handler(message))

    def alert(self, message: str):
        self.alerts.append(message)

    def _dispatch(self, event: NavigationEvent) -> NavigationEvent:
        for handler in list(self._listeners.get(event.type, [])):
            handler(event)
        return event

    def navigate(self, path: str) -> bool:
        """In-app navigation; returns False when a blocker refused it"""
        attempt = LeaveAttempt(from_path=self.current_path, to_path=path)
        for predicate in list(self._blockers):
            if not predicate(attempt):
                logger.info(f"[Navigation] Blocked {attempt.from_path} -> {path}")
                return False
        self.push_state(path)
        return True

    def back(self) -> bool:
        """Browser back button; popstate listeners run after history moves"""
        if self.index == 0:
            return False
        self.index -= 1
        self._dispatch(NavigationEvent(POP_STATE))
        return True

    def unload(self) -> bool:
        """Tab close or reload; returns True when the leave prompt would be shown"""
        event = self._dispatch(NavigationEvent(BEFORE_UNLOAD))
        return event.default_prevented or event.return_value is not None


class PaymentNavigationGuard:
    """Registers the three navigation listeners while the payment flag is set"""

    def __init__(self, store: AppStore, host: NavigationHost):
        self.store = store
        self.host = host
        self._registrations: List[Disposable] = []
        self._guarded_path: Optional[str] = None
        self._subscription: Optional[Disposable] = None

    @property
    def active(self) -> bool:
        return bool(self._registrations)

    def attach(self) -> Disposable:
        """Start following the payment flag"""
        if self._subscription is None:
            self._subscription = self.store.subscribe_processing(self._on_processing_changed)
            if self.store.is_processing_payment:
                self._engage()
        return Disposable(self.detach)

    def detach(self):
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        self._release()

    def _on_processing_changed(self, processing: bool):
        if processing:
            self._engage()
        else:
            self._release()

    def _engage(self):
        if self.active:
            return
        self._guarded_path = self.host.current_path
        self._registrations = [
            self.host.on_before_leave(self._allow_leave),
            self.host.add_listener(BEFORE_UNLOAD, self._on_before_unload),
            self.host.add_listener(POP_STATE, self._on_pop_state),
        ]
        logger.info(f"[PaymentGuard] Navigation guard engaged on {self._guarded_path}")

    def _release(self):
        if not self.active:
            return
        for registration in self._registrations:
            registration.dispose()
        self._registrations = []
        self._guarded_path = None
        logger.info("[PaymentGuard] Navigation guard released")

    def _allow_leave(self, attempt: LeaveAttempt) -> bool:
        allowed = self.host.confirm(LEAVE_CONFIRM_MESSAGE)
        if allowed:
            # The in-flight payment is abandoned client side, not cancelled
            logger.warning(f"[PaymentGuard] User left {attempt.from_path} during payment processing")
        return allowed

    def _on_before_unload(self, event: NavigationEvent):
        event.prevent_default()
        event.return_value = ""

    def _on_pop_state(self, event: NavigationEvent):
        self.host.push_state(self._guarded_path or self.host.current_path)
        self.host.alert(BACK_ALERT_MESSAGE)
