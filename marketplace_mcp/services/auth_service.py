"""
Authentication service

Signup (buyer, seller, driver), login, logout, session restore and the
password flows. Tokens and the user live in the app store, which
persists them to local storage.
"""

from typing import Any, Dict, Optional, Tuple

from ..app_state import AppStore
from ..client_storage import SIGNUP_EMAIL_KEY
from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.auth import AuthTokens, SignupRequest, User
from ..protocol.errors import BackendResponseError, ErrorHandler, MarketplaceError, ValidationError
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier
from .otp_service import OtpService

logger = get_logger(__name__)

SIGNUP_FAILED_MESSAGE = "Failed to create account. Please try again."
SIGNUP_SUCCESS_MESSAGE = "Account created! Please check your email for the verification code."
LOGIN_FAILED_MESSAGE = "Invalid email or password"
LOGOUT_MESSAGE = "Logged out successfully"

AuthResult = Tuple[bool, str, Optional[Dict[str, Any]]]


class AuthService:
    """Account lifecycle against the marketplace backend"""

    def __init__(self, backend: MarketplaceBackendClient, store: AppStore, notifier: ToastNotifier,
                 otp_service: Optional[OtpService] = None):
        self.backend = backend
        self.store = store
        self.notifier = notifier
        self.otp_service = otp_service or OtpService(backend, store, notifier)
        logger.info("AuthService initialized")

    def _fail(self, error: Exception, fallback: str, notify: bool = True) -> AuthResult:
        message = ErrorHandler.user_message(error, fallback)
        if notify:
            self.notifier.error(message)
        return False, message, None

    async def _load_profile(self, fallback_profile: Optional[Dict] = None) -> Optional[User]:
        """Fetch ``/auth/me``; fall back to the profile already in hand"""
        try:
            profile = unwrap_data(await self.backend.get_me(), {}).get("user")
        except MarketplaceError as e:
            logger.warning(f"[Auth] Profile fetch failed, using login payload: {e}")
            profile = None
        profile = profile or fallback_profile
        return User.from_api(profile) if isinstance(profile, dict) else None

    # ================================
    # SIGNUP
    # ================================

    async def signup(self, request: SignupRequest) -> AuthResult:
        """
        Register an account and send the verification OTP

        Args:
            request: BuyerSignup, SellerSignup or DriverSignup

        Returns:
            Tuple of (success, message, data)
        """
        try:
            request.ensure_valid()
        except ValidationError as e:
            return self._fail(e, SIGNUP_FAILED_MESSAGE)

        try:
            response = await self.backend.register(request.to_payload())
        except MarketplaceError as e:
            logger.error(f"[Auth] {request.role} signup failed for {request.email}: {e}")
            return self._fail(e, SIGNUP_FAILED_MESSAGE)

        user = unwrap_data(response, {}).get("user") or {}
        email = user.get("email") or request.email.strip()
        self.store.storage.session.set_item(SIGNUP_EMAIL_KEY, email)

        # The account exists even if the first OTP could not be sent; resend covers it
        otp_sent, otp_message, _ = await self.otp_service.create_otp(email)
        if not otp_sent:
            logger.warning(f"[Auth] Signup OTP not sent for {email}: {otp_message}")

        self.notifier.success(SIGNUP_SUCCESS_MESSAGE)
        logger.info(f"[Auth] {request.role} account created: {email}")
        return True, SIGNUP_SUCCESS_MESSAGE, {"email": email, "role": request.role, "otp_sent": otp_sent}

    async def complete_google_signup(self, request: SignupRequest, user_id: str) -> AuthResult:
        """Finish a Google sign-in by choosing the account role"""
        try:
            response = await self.backend.complete_google_signup(request.google_completion_payload(user_id))
        except MarketplaceError as e:
            return self._fail(e, SIGNUP_FAILED_MESSAGE)

        if response.get("status") != "success":
            message = response.get("message") or SIGNUP_FAILED_MESSAGE
            self.notifier.error(message)
            return False, message, None

        data = unwrap_data(response, {})
        self.store.set_tokens(AuthTokens.from_dict(data.get("tokens")))
        user = await self._load_profile(data.get("user"))
        if user is None:
            self.notifier.error(SIGNUP_FAILED_MESSAGE)
            return False, SIGNUP_FAILED_MESSAGE, None

        self.store.set_user(user)
        self.notifier.success("Account setup completed successfully!")
        return True, "Account setup completed successfully!", {"user": user.to_dict()}

    # ================================
    # SESSION
    # ================================

    async def login(self, email: str, password: str) -> AuthResult:
        try:
            response = await self.backend.login(email, password)
        except MarketplaceError as e:
            logger.warning(f"[Auth] Login failed for {email}: {e}")
            return self._fail(e, LOGIN_FAILED_MESSAGE)

        data = unwrap_data(response, {})
        tokens = AuthTokens.from_dict(data.get("tokens"))
        if tokens is None:
            self.notifier.error(LOGIN_FAILED_MESSAGE)
            return False, LOGIN_FAILED_MESSAGE, None

        # Token first so the profile request is authenticated
        self.store.set_tokens(tokens)
        user = await self._load_profile(data.get("user"))
        if user is None:
            self.store.clear_auth()
            self.notifier.error(LOGIN_FAILED_MESSAGE)
            return False, LOGIN_FAILED_MESSAGE, None

        self.store.set_user(user)
        self.notifier.success("Login successful")
        logger.info(f"[Auth] Logged in: {user.email} ({user.role})")
        return True, "Login successful", {"user": user.to_dict()}

    async def logout(self) -> AuthResult:
        """Tell the backend, then always drop local auth state"""
        try:
            await self.backend.logout()
        except MarketplaceError as e:
            logger.warning(f"[Auth] Backend logout failed, clearing local session anyway: {e}")
        finally:
            self.store.clear_auth()

        self.notifier.success(LOGOUT_MESSAGE)
        return True, LOGOUT_MESSAGE, None

    async def check_auth(self) -> AuthResult:
        """Validate the stored token against ``/auth/me``"""
        if not self.store.access_token:
            return False, "Not authenticated", None

        try:
            profile = unwrap_data(await self.backend.get_me(), {}).get("user")
        except BackendResponseError as e:
            if e.status_code == 401:
                logger.info("[Auth] Stored token rejected, clearing session")
                self.store.clear_auth()
            return self._fail(e, "Session expired. Please log in again.", notify=False)
        except MarketplaceError as e:
            return self._fail(e, "Could not verify session", notify=False)

        if not isinstance(profile, dict):
            return False, "Could not verify session", None

        user = User.from_api(profile)
        self.store.set_user(user)
        return True, "Authenticated", {"user": user.to_dict()}

    async def refresh_session(self) -> AuthResult:
        refresh_token = self.store.refresh_token
        if not refresh_token:
            return False, "No refresh token available", None
        try:
            response = await self.backend.refresh_token(refresh_token)
        except MarketplaceError as e:
            return self._fail(e, "Session expired. Please log in again.", notify=False)

        tokens = AuthTokens.from_dict(unwrap_data(response, {}).get("tokens") or unwrap_data(response, {}))
        if tokens is None:
            return False, "Session expired. Please log in again.", None
        self.store.set_tokens(tokens)
        return True, "Session refreshed", None

    # ================================
    # PASSWORDS
    # ================================

    async def change_password(self, current_password: str, new_password: str) -> AuthResult:
        try:
            response = await self.backend.change_password(current_password, new_password)
        except MarketplaceError as e:
            return self._fail(e, "Failed to change password")
        message = response.get("message") or "Password changed successfully"
        self.notifier.success(message)
        return True, message, None

    async def forgot_password(self, email: str) -> AuthResult:
        try:
            response = await self.backend.forgot_password(email)
        except MarketplaceError as e:
            return self._fail(e, "Failed to send reset email")
        message = response.get("message") or "Password reset link sent to your email"
        self.notifier.success(message)
        return True, message, None

    async def verify_reset_token(self, token: str) -> AuthResult:
        try:
            response = await self.backend.verify_reset_token(token)
        except MarketplaceError as e:
            return self._fail(e, "Invalid or expired reset link", notify=False)
        return True, response.get("message") or "Reset token is valid", unwrap_data(response)

    async def reset_password(self, token: str, password: str) -> AuthResult:
        try:
            response = await self.backend.reset_password(token, password)
        except MarketplaceError as e:
            return self._fail(e, "Failed to reset password")
        message = response.get("message") or "Password reset successfully"
        self.notifier.success(message)
        return True, message, None
