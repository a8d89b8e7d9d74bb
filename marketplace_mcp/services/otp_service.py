"""
OTP service - email verification codes with a client-side resend cooldown

The cooldown is anchored on ``otp_resend_timestamp`` in local storage.
The server is the authority: when it answers a resend with "wait N
seconds", the stored timestamp is rewritten so the local countdown shows
exactly N seconds.
"""

import re
import time
from typing import Callable, Dict, Optional, Tuple

from ..app_state import AppStore
from ..client_storage import OTP_RESEND_KEY, SIGNUP_EMAIL_KEY
from ..config import config
from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.auth import AuthTokens, User
from ..protocol.errors import BackendResponseError, ErrorHandler, MarketplaceError
from ..utils.logger import get_logger
from ..utils.notifier import ToastNotifier

logger = get_logger(__name__)

OTP_TYPE_REGISTRATION = "UR"

EMAIL_NOT_FOUND_MESSAGE = "Email not found. Please sign up again."
INVALID_OTP_MESSAGE = "Invalid OTP. Please try again."
VERIFIED_MESSAGE = "Email verified successfully!"
RESENT_MESSAGE = "OTP resent successfully!"
RESEND_FAILED_MESSAGE = "Failed to resend OTP. Please try again."

_SERVER_WAIT_PATTERN = re.compile(r"(\d+)\s*seconds?", re.IGNORECASE)


def _now_ms() -> int:
    return int(time.time() * 1000)


def parse_server_wait(message: Optional[str]) -> Optional[int]:
    """Seconds the server asks us to wait, if the message names them"""
    if not message:
        return None
    match = _SERVER_WAIT_PATTERN.search(message)
    return int(match.group(1)) if match else None


class OtpService:
    """Create, resend and verify registration OTPs"""

    def __init__(self, backend: MarketplaceBackendClient, store: AppStore, notifier: ToastNotifier,
                 clock: Callable[[], int] = _now_ms, cooldown_seconds: Optional[int] = None,
                 otp_length: Optional[int] = None):
        self.backend = backend
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.cooldown_seconds = (config.otp.resend_cooldown_seconds
                                 if cooldown_seconds is None else cooldown_seconds)
        self.otp_length = config.otp.otp_length if otp_length is None else otp_length

    @property
    def _local(self):
        return self.store.storage.local

    @property
    def signup_email(self) -> Optional[str]:
        return self.store.storage.session.get_item(SIGNUP_EMAIL_KEY)

    # ================================
    # COOLDOWN
    # ================================

    def _stamp(self, timestamp_ms: Optional[int] = None):
        self._local.set_item(OTP_RESEND_KEY, str(self.clock() if timestamp_ms is None else timestamp_ms))

    def _clear_stamp(self):
        self._local.remove_item(OTP_RESEND_KEY)

    def remaining_cooldown(self) -> int:
        """Whole seconds left before another resend is allowed"""
        raw = self._local.get_item(OTP_RESEND_KEY)
        if not raw:
            return 0
        try:
            stamped = int(raw)
        except ValueError:
            logger.warning(f"[OTP] Dropping unreadable resend timestamp: {raw!r}")
            self._clear_stamp()
            return 0

        elapsed = (self.clock() - stamped) // 1000
        remaining = self.cooldown_seconds - elapsed
        if remaining <= 0:
            self._clear_stamp()
            return 0
        return remaining

    def _adopt_server_wait(self, seconds: int):
        seconds = min(max(seconds, 0), self.cooldown_seconds)
        self._stamp(self.clock() - (self.cooldown_seconds - seconds) * 1000)
        logger.info(f"[OTP] Server cooldown adopted: {seconds}s remaining")

    # ================================
    # OPERATIONS
    # ================================

    async def create_otp(self, email: str, otp_type: str = OTP_TYPE_REGISTRATION) -> Tuple[bool, str, Optional[Dict]]:
        """Request the first OTP for an email and start the cooldown"""
        try:
            response = await self.backend.create_otp(email, otp_type)
            self._stamp()
            logger.info(f"[OTP] Created OTP for {email}")
            return True, response.get("message") or "OTP sent", unwrap_data(response)
        except MarketplaceError as e:
            logger.error(f"[OTP] Create failed for {email}: {e}")
            return False, ErrorHandler.user_message(e, "Failed to send OTP"), None

    async def resend_otp(self, otp_type: str = OTP_TYPE_REGISTRATION) -> Tuple[bool, str, Optional[Dict]]:
        """Resend the OTP to the email stored at signup"""
        email = self.signup_email
        if not email:
            self.notifier.error(EMAIL_NOT_FOUND_MESSAGE)
            return False, EMAIL_NOT_FOUND_MESSAGE, None

        remaining = self.remaining_cooldown()
        if remaining > 0:
            message = f"Please wait {remaining} seconds before requesting another OTP"
            self.notifier.error(message)
            return False, message, {"remaining_seconds": remaining}

        self._stamp()
        try:
            response = await self.backend.resend_otp(email, otp_type)
        except MarketplaceError as e:
            message = ErrorHandler.user_message(e, RESEND_FAILED_MESSAGE)
            server_wait = parse_server_wait(message) if isinstance(e, BackendResponseError) else None
            if server_wait is not None:
                self._adopt_server_wait(server_wait)
            else:
                self._clear_stamp()
            logger.warning(f"[OTP] Resend failed for {email}: {e}")
            self.notifier.error(message)
            return False, message, {"remaining_seconds": self.remaining_cooldown()}

        self.notifier.success(RESENT_MESSAGE)
        return True, RESENT_MESSAGE, {"remaining_seconds": self.remaining_cooldown()}

    async def _load_profile(self):
        """Sign in from ``/auth/me`` when verification returned tokens only"""
        if not self.store.access_token:
            return
        try:
            profile = unwrap_data(await self.backend.get_me(), {}).get("user")
        except MarketplaceError as e:
            logger.warning(f"[OTP] Verified but could not load the profile: {e}")
            return
        if isinstance(profile, dict):
            self.store.set_user(User.from_api(profile, verified=True))

    async def verify_otp(self, otp: str, otp_type: str = OTP_TYPE_REGISTRATION) -> Tuple[bool, str, Optional[Dict]]:
        """Verify the code, sign the user in and forget the signup email"""
        otp = (otp or "").strip()
        if len(otp) != self.otp_length or not otp.isdigit():
            message = f"Please enter a {self.otp_length}-digit OTP"
            self.notifier.error(message)
            return False, message, None

        email = self.signup_email
        if not email:
            self.notifier.error(EMAIL_NOT_FOUND_MESSAGE)
            return False, EMAIL_NOT_FOUND_MESSAGE, None

        try:
            response = await self.backend.verify_otp(email, otp, otp_type)
        except MarketplaceError as e:
            message = ErrorHandler.user_message(e, INVALID_OTP_MESSAGE)
            logger.warning(f"[OTP] Verification failed for {email}: {e}")
            self.notifier.error(message)
            return False, message, None

        data = unwrap_data(response, {})
        tokens = AuthTokens.from_dict(data.get("tokens"))
        profile = data.get("user")
        if isinstance(profile, dict):
            self.store.set_auth(User.from_api(profile, verified=True), tokens)
        else:
            self.store.set_tokens(tokens)
            await self._load_profile()

        self.store.storage.session.remove_item(SIGNUP_EMAIL_KEY)
        self._clear_stamp()

        message = response.get("message") or VERIFIED_MESSAGE
        self.notifier.success(message)
        logger.info(f"[OTP] Email verified: {email}")
        return True, message, {"user": self.store.user.to_dict() if self.store.user else None}
