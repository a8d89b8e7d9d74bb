"""
Tests for the marketplace REST client.

Run with: python -m pytest tests/ -v
"""

import asyncio

import httpx
import pytest

from marketplace_mcp.marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from marketplace_mcp.protocol.errors import BackendConnectionError, BackendResponseError

BASE_URL = "http://marketplace.test"


def make_client(fake_backend, token=None, **kwargs):
    return MarketplaceBackendClient(base_url=BASE_URL + "/", token_provider=lambda: token,
                                    transport=fake_backend.transport, **kwargs)


class TestRequests:

    def test_bearer_token_is_attached(self, fake_backend):
        fake_backend.on("GET", "/wishlists/count", json_body={"data": {"count": 1}})

        asyncio.run(make_client(fake_backend, token="abc").get_wishlist_count())

        request = fake_backend.requests[0]
        assert request.headers["Authorization"] == "Bearer abc"
        assert request.headers["Content-Type"] == "application/json"

    def test_no_token_no_header(self, fake_backend):
        fake_backend.on("POST", "/auth/login", json_body={})

        asyncio.run(make_client(fake_backend).login("a@example.com", "pw"))

        assert "Authorization" not in fake_backend.requests[0].headers
        assert fake_backend.body(fake_backend.requests[0]) == {"email": "a@example.com", "password": "pw"}

    def test_trailing_slash_is_trimmed(self, fake_backend):
        client = make_client(fake_backend)

        assert client.base_url == BASE_URL

    def test_base_url_required(self, monkeypatch):
        from marketplace_mcp.config import config
        monkeypatch.setattr(config.api, "backend_endpoint", "")

        with pytest.raises(ValueError):
            MarketplaceBackendClient()

    def test_non_json_success_body(self, fake_backend):
        fake_backend.on("DELETE", "/user/cards/c1", handler=lambda request: httpx.Response(204))

        result = asyncio.run(make_client(fake_backend, token="t").delete_card("c1"))

        assert result == {"success": True, "data": ""}


class TestErrors:

    def test_error_status_raises_with_body(self, fake_backend):
        fake_backend.on("POST", "/checkout/confirm-payment", status=409, json_body={"message": "Already confirmed"})

        with pytest.raises(BackendResponseError) as exc_info:
            asyncio.run(make_client(fake_backend, token="t").confirm_payment("pi_1", "o1"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Already confirmed"
        assert exc_info.value.endpoint == "/checkout/confirm-payment"

    def test_plain_text_error_body(self, fake_backend):
        fake_backend.on("GET", "/addresses", handler=lambda request: httpx.Response(502, text="Bad gateway"))

        with pytest.raises(BackendResponseError) as exc_info:
            asyncio.run(make_client(fake_backend, token="t").get_addresses())

        assert exc_info.value.response_data == {"message": "Bad gateway"}

    def test_transport_failure(self, fake_backend):
        fake_backend.fail_connection("GET", "/auth/me")

        with pytest.raises(BackendConnectionError):
            asyncio.run(make_client(fake_backend, token="t").get_me())


class TestCurlLogging:

    def test_secrets_are_masked(self, fake_backend):
        client = make_client(fake_backend, debug_curl=True)

        command = client._generate_curl_command(
            "POST", f"{BASE_URL}/user/cards",
            {"Authorization": "Bearer secret-token"},
            None,
            {"cardNumber": "4242424242424242", "cardholderName": "Sam"}
        )

        assert "secret-token" not in command
        assert "4242424242424242" not in command
        assert "Sam" in command


class TestUnwrapData:

    def test_unwrap(self):
        assert unwrap_data({"data": {"a": 1}}) == {"a": 1}
        assert unwrap_data({"data": None}, []) == []
        assert unwrap_data(None, {}) == {}
