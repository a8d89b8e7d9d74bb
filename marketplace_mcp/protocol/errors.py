"""
Marketplace Error Handling

Implements the client error taxonomy used by every service:
validation errors raised before any network call, transport errors where no
response was received, server-rejected errors carrying the backend payload,
and everything else.
"""

from typing import Optional, Any, Dict
from enum import Enum


NO_RESPONSE_MESSAGE = "No response from server. Please check your connection."


class ErrorKind(str, Enum):
    """Error taxonomy for user-facing failures"""

    VALIDATION = "validation"   # client-side, pre-network
    NETWORK = "network"         # no response received
    SERVER = "server"           # response received with an error status
    UNKNOWN = "unknown"


class MarketplaceError(Exception):
    """Base class for all marketplace client errors"""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        """
        Initialize marketplace error

        Args:
            message: Human-readable error message
            data: Optional additional error data
        """
        self.message = message
        self.data = data or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a serializable dict"""
        error_dict = {
            "kind": self.kind.value,
            "message": self.message
        }
        if self.data:
            error_dict["data"] = self.data
        return error_dict


class ValidationError(MarketplaceError):
    """A client-side precondition failed before any request was sent"""

    kind = ErrorKind.VALIDATION


class CheckoutValidationError(ValidationError):
    """Checkout is missing an address, a card or supported items"""


class BackendConnectionError(MarketplaceError):
    """The request was sent but no response came back"""

    kind = ErrorKind.NETWORK

    def __init__(self, endpoint: str, reason: str = ""):
        super().__init__(
            NO_RESPONSE_MESSAGE,
            {"endpoint": endpoint, "reason": reason}
        )
        self.endpoint = endpoint


class BackendResponseError(MarketplaceError):
    """The backend answered with a non-2xx status"""

    kind = ErrorKind.SERVER

    def __init__(self, endpoint: str, status_code: int, response_data: Optional[Dict[str, Any]] = None):
        self.endpoint = endpoint
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(
            extract_server_message(self.response_data) or f"HTTP {status_code} for {endpoint}",
            {"endpoint": endpoint, "status_code": status_code}
        )


def extract_server_message(response_data: Any) -> Optional[str]:
    """Pull the user-facing message out of a backend error body.

    Looks at ``message`` first, then ``error.message``.
    """
    if not isinstance(response_data, dict):
        return None

    message = response_data.get("message")
    if isinstance(message, str) and message:
        return message

    error = response_data.get("error")
    if isinstance(error, dict):
        nested = error.get("message")
        if isinstance(nested, str) and nested:
            return nested

    return None


class ErrorHandler:
    """Utility class for converting errors into toast copy"""

    @staticmethod
    def classify(e: BaseException) -> ErrorKind:
        """Return the taxonomy bucket for an exception"""
        if isinstance(e, MarketplaceError):
            return e.kind
        return ErrorKind.UNKNOWN

    @staticmethod
    def user_message(e: BaseException, fallback: str, use_exception_text: bool = False) -> str:
        """
        Convert any exception to the message shown to the user

        Args:
            e: Exception to convert
            fallback: Copy to show when the error carries no usable message
            use_exception_text: Prefer the exception's own text over the
                fallback for unknown errors

        Returns:
            Message string
        """
        if isinstance(e, BackendResponseError):
            return extract_server_message(e.response_data) or fallback

        if isinstance(e, BackendConnectionError):
            return NO_RESPONSE_MESSAGE

        if isinstance(e, ValidationError):
            return e.message

        if use_exception_text and str(e):
            return str(e)

        return fallback
