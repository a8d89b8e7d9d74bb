"""
Tests for error classification and user-facing messages.

Run with: python -m pytest tests/ -v
"""

import asyncio

from marketplace_mcp.protocol.errors import (
    NO_RESPONSE_MESSAGE,
    BackendConnectionError,
    BackendResponseError,
    CheckoutValidationError,
    ErrorHandler,
    ErrorKind,
    extract_server_message
)
from marketplace_mcp.utils.decorators import with_error_handling


class TestServerMessage:

    def test_top_level_message(self):
        assert extract_server_message({"message": "Out of stock"}) == "Out of stock"

    def test_nested_error_message(self):
        assert extract_server_message({"error": {"message": "Card expired"}}) == "Card expired"

    def test_nothing_usable(self):
        assert extract_server_message({"message": ""}) is None
        assert extract_server_message("oops") is None


class TestUserMessage:
    """The four buckets of the taxonomy."""

    def test_validation(self):
        error = CheckoutValidationError("Please select a payment method")

        assert ErrorHandler.classify(error) == ErrorKind.VALIDATION
        assert ErrorHandler.user_message(error, "fallback") == "Please select a payment method"

    def test_network(self):
        error = BackendConnectionError("/checkout/confirm-payment", "timed out")

        assert ErrorHandler.classify(error) == ErrorKind.NETWORK
        assert ErrorHandler.user_message(error, "fallback") == NO_RESPONSE_MESSAGE

    def test_server_with_message(self):
        error = BackendResponseError("/auth/login", 401, {"message": "Invalid credentials"})

        assert ErrorHandler.classify(error) == ErrorKind.SERVER
        assert ErrorHandler.user_message(error, "fallback") == "Invalid credentials"
        assert error.status_code == 401

    def test_server_without_message(self):
        error = BackendResponseError("/upload", 500, {})

        assert ErrorHandler.user_message(error, "Failed to upload file") == "Failed to upload file"

    def test_unknown(self):
        error = RuntimeError("boom")

        assert ErrorHandler.classify(error) == ErrorKind.UNKNOWN
        assert ErrorHandler.user_message(error, "Something went wrong") == "Something went wrong"
        assert ErrorHandler.user_message(error, "Something went wrong", use_exception_text=True) == "boom"

    def test_to_dict(self):
        error = BackendResponseError("/wishlists", 404, {"message": "Not found"})

        assert error.to_dict() == {
            "kind": "server",
            "message": "Not found",
            "data": {"endpoint": "/wishlists", "status_code": 404},
        }


class TestErrorHandlingDecorator:
    """Escaped exceptions become the standard failure envelope."""

    def test_marketplace_error(self):
        @with_error_handling("Failed to load cart")
        async def adapter(session_id=None):
            raise BackendConnectionError("/cart")

        result = asyncio.run(adapter(session_id="s1"))

        assert result == {
            "success": False,
            "message": NO_RESPONSE_MESSAGE,
            "session": {"session_id": "s1"},
            "error_type": "network",
        }

    def test_timeout(self):
        @with_error_handling()
        async def adapter(session_id=None):
            raise asyncio.TimeoutError()

        assert asyncio.run(adapter())["error_type"] == "timeout"

    def test_unexpected_exception(self):
        @with_error_handling("Failed to place order")
        async def adapter(session_id=None):
            raise KeyError("paymentIntentId")

        result = asyncio.run(adapter(session_id="s1"))

        assert result["error_type"] == "exception"
        assert result["message"].startswith("Failed to place order")

    def test_success_passes_through(self):
        @with_error_handling()
        async def adapter(session_id=None):
            return {"success": True}

        assert asyncio.run(adapter()) == {"success": True}
