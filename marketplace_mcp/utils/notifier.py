"""User-facing notifications (toasts)"""

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Deque, List, Optional

from .logger import get_logger

logger = get_logger(__name__)


@dataclass
class Toast:
    level: str  # success, error
    message: str
    created_at: str


class ToastNotifier:
    """Records the most recent toasts so tool responses can surface them"""

    def __init__(self, max_history: int = 50):
        self._toasts: Deque[Toast] = deque(maxlen=max_history)

    def _push(self, level: str, message: str):
        self._toasts.append(Toast(level, message, datetime.now(timezone.utc).isoformat()))

    def success(self, message: str):
        logger.info(f"[Toast] {message}")
        self._push("success", message)

    def error(self, message: str):
        logger.warning(f"[Toast] {message}")
        self._push("error", message)

    @property
    def last(self) -> Optional[Toast]:
        return self._toasts[-1] if self._toasts else None

    def history(self, level: Optional[str] = None) -> List[Toast]:
        return [toast for toast in self._toasts if level is None or toast.level == level]

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [toast.message for toast in self.history(level)]

    def clear(self):
        self._toasts.clear()
