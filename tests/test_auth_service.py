"""
Tests for signup, login, logout and session checks.

Run with: python -m pytest tests/ -v
"""

import asyncio

import pytest

from marketplace_mcp.client_storage import ACCESS_TOKEN_KEY, OTP_RESEND_KEY, SIGNUP_EMAIL_KEY
from marketplace_mcp.models.auth import AuthTokens, BuyerSignup, SellerSignup, User
from marketplace_mcp.services.auth_service import (
    LOGIN_FAILED_MESSAGE,
    LOGOUT_MESSAGE,
    SIGNUP_SUCCESS_MESSAGE,
    AuthService
)

PROFILE = {"id": "u1", "email": "sam@example.com", "firstName": "Sam", "lastName": "Doe", "role": "seller"}


@pytest.fixture
def auth(backend, store, notifier):
    return AuthService(backend, store, notifier)


def buyer():
    return BuyerSignup(email="sam@example.com", password="Secret123!", first_name="Sam", last_name="Doe",
                       phone="(555) 010-0200")


class TestSignup:
    """Registration stores the signup email and sends the first OTP."""

    def test_success(self, auth, fake_backend, storage, notifier):
        fake_backend.on("POST", "/auth/register", json_body={"data": {"user": {"email": "sam@example.com"}}})
        fake_backend.on("POST", "/otp/create", json_body={"message": "OTP sent"})

        success, message, data = asyncio.run(auth.signup(buyer()))

        assert success
        assert message == SIGNUP_SUCCESS_MESSAGE
        assert data == {"email": "sam@example.com", "role": "buyer", "otp_sent": True}
        assert storage.session.get_item(SIGNUP_EMAIL_KEY) == "sam@example.com"
        assert storage.local.get_item(OTP_RESEND_KEY) is not None

        register_body = fake_backend.body(fake_backend.calls("POST", "/auth/register")[0])
        assert register_body["accountType"] == "buyer"
        assert register_body["phone"] == "5550100200"

    def test_otp_failure_does_not_fail_signup(self, auth, fake_backend):
        fake_backend.on("POST", "/auth/register", json_body={"data": {"user": {"email": "sam@example.com"}}})
        fake_backend.on("POST", "/otp/create", status=500, json_body={"message": "Mailer down"})

        success, _, data = asyncio.run(auth.signup(buyer()))

        assert success
        assert data["otp_sent"] is False

    def test_missing_seller_fields_never_reach_backend(self, auth, fake_backend, notifier):
        request = SellerSignup(email="s@example.com", password="pw", first_name="S", last_name="L")

        success, message, _ = asyncio.run(auth.signup(request))

        assert not success
        assert "business_name" in message
        assert fake_backend.requests == []
        assert notifier.last.level == "error"

    def test_server_rejection(self, auth, fake_backend, storage):
        fake_backend.on("POST", "/auth/register", status=409, json_body={"message": "Email already registered"})

        success, message, _ = asyncio.run(auth.signup(buyer()))

        assert not success
        assert message == "Email already registered"
        assert storage.session.get_item(SIGNUP_EMAIL_KEY) is None


class TestLogin:
    """Tokens first, then the profile."""

    def test_success(self, auth, fake_backend, store):
        fake_backend.on("POST", "/auth/login", json_body={"data": {"tokens": {"accessToken": "access-1"}}})
        fake_backend.on("GET", "/auth/me", json_body={"data": {"user": PROFILE}})

        success, _, data = asyncio.run(auth.login("sam@example.com", "Secret123!"))

        assert success
        assert data["user"]["role"] == "seller"
        assert store.is_authenticated
        me_request = fake_backend.calls("GET", "/auth/me")[0]
        assert me_request.headers["Authorization"] == "Bearer access-1"

    def test_profile_falls_back_to_login_payload(self, auth, fake_backend, store):
        fake_backend.on("POST", "/auth/login", json_body={
            "data": {"tokens": {"accessToken": "access-1"}, "user": PROFILE}
        })
        fake_backend.on("GET", "/auth/me", status=500, json_body={})

        success, _, _ = asyncio.run(auth.login("sam@example.com", "Secret123!"))

        assert success
        assert store.user.email == "sam@example.com"

    def test_missing_token(self, auth, fake_backend, store):
        fake_backend.on("POST", "/auth/login", json_body={"data": {}})

        success, message, _ = asyncio.run(auth.login("sam@example.com", "x"))

        assert not success
        assert message == LOGIN_FAILED_MESSAGE
        assert not store.is_authenticated

    def test_rejected_credentials(self, auth, fake_backend, notifier):
        fake_backend.on("POST", "/auth/login", status=401, json_body={"message": "Invalid credentials"})

        success, message, _ = asyncio.run(auth.login("sam@example.com", "wrong"))

        assert not success
        assert message == "Invalid credentials"
        assert notifier.messages("error") == ["Invalid credentials"]


class TestSession:
    """Logout and stored-session checks."""

    def _sign_in(self, store):
        store.set_auth(User.from_api(PROFILE), AuthTokens("access-1", "refresh-1"))

    def test_logout_clears_even_when_backend_fails(self, auth, fake_backend, store, storage):
        self._sign_in(store)
        fake_backend.on("POST", "/auth/logout", status=500, json_body={})

        success, message, _ = asyncio.run(auth.logout())

        assert success
        assert message == LOGOUT_MESSAGE
        assert not store.is_authenticated
        assert storage.local.get_item(ACCESS_TOKEN_KEY) is None

    def test_check_auth_clears_rejected_token(self, auth, fake_backend, store):
        self._sign_in(store)
        fake_backend.on("GET", "/auth/me", status=401, json_body={"message": "jwt expired"})

        success, _, _ = asyncio.run(auth.check_auth())

        assert not success
        assert not store.is_authenticated
        assert store.access_token is None

    def test_check_auth_keeps_session_on_network_error(self, auth, fake_backend, store):
        self._sign_in(store)
        fake_backend.fail_connection("GET", "/auth/me")

        success, _, _ = asyncio.run(auth.check_auth())

        assert not success
        assert store.access_token == "access-1"

    def test_check_auth_without_token(self, auth, fake_backend):
        success, message, _ = asyncio.run(auth.check_auth())

        assert not success
        assert message == "Not authenticated"
        assert fake_backend.requests == []

    def test_refresh_session(self, auth, fake_backend, store):
        self._sign_in(store)
        fake_backend.on("POST", "/auth/refresh", json_body={"data": {"accessToken": "access-2"}})

        success, _, _ = asyncio.run(auth.refresh_session())

        assert success
        assert store.access_token == "access-2"
        assert store.refresh_token == "refresh-1"

    def test_store_restores_persisted_session(self, store, storage):
        self._sign_in(store)

        from marketplace_mcp.app_state import AppStore
        restored = AppStore(storage).init()

        assert restored.is_authenticated
        assert restored.user.email == "sam@example.com"


class TestPasswords:

    def test_reset_password_uses_server_message(self, auth, fake_backend, notifier):
        fake_backend.on("POST", "/auth/reset-password", json_body={"message": "Password updated"})

        success, message, _ = asyncio.run(auth.reset_password("tok", "NewSecret1!"))

        assert success
        assert message == "Password updated"
        assert notifier.messages("success") == ["Password updated"]

    def test_invalid_reset_token_is_not_toasted(self, auth, fake_backend, notifier):
        fake_backend.on("POST", "/auth/verify-reset-token", status=400, json_body={})

        success, message, _ = asyncio.run(auth.verify_reset_token("bad"))

        assert not success
        assert message == "Invalid or expired reset link"
        assert notifier.history() == []
