"""
Protocol Package - client error taxonomy

This package contains:
- The marketplace error hierarchy
- Conversion of errors into user-facing messages
"""

from .errors import (
    ErrorKind,
    MarketplaceError,
    ValidationError,
    CheckoutValidationError,
    BackendConnectionError,
    BackendResponseError,
    ErrorHandler,
    extract_server_message,
    NO_RESPONSE_MESSAGE
)

__all__ = [
    'ErrorKind',
    'MarketplaceError',
    'ValidationError',
    'CheckoutValidationError',
    'BackendConnectionError',
    'BackendResponseError',
    'ErrorHandler',
    'extract_server_message',
    'NO_RESPONSE_MESSAGE'
]
