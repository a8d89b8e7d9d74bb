"""Authentication and OTP operations for MCP adapters"""

from typing import Any, Dict, Optional

from ..models.auth import signup_from_dict
from ..protocol.errors import ValidationError
from ..utils.decorators import with_error_handling
from ..utils.logger import get_logger
from .utils import get_app, respond

logger = get_logger(__name__)


@with_error_handling("Failed to create account")
async def signup(session_id: Optional[str] = None, signup: Optional[Dict[str, Any]] = None,
                 **kwargs) -> Dict[str, Any]:
    """MCP adapter for buyer, seller and driver signup"""
    app = get_app()
    try:
        request = signup_from_dict(signup or {})
    except ValidationError as e:
        return respond(app, False, e.message, session_id)

    logger.info(f"[Auth] Signup requested for role={request.role}")
    success, message, data = await app.auth.signup(request)
    return respond(app, success, message, session_id, **(data or {}))


@with_error_handling("Failed to complete signup")
async def complete_google_signup(session_id: Optional[str] = None, user_id: str = "",
                                 signup: Optional[Dict[str, Any]] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    try:
        request = signup_from_dict(signup or {})
    except ValidationError as e:
        return respond(app, False, e.message, session_id)

    success, message, data = await app.auth.complete_google_signup(request, user_id)
    return respond(app, success, message, session_id, **(data or {}))


@with_error_handling("Login failed")
async def login(session_id: Optional[str] = None, email: str = "", password: str = "",
                **kwargs) -> Dict[str, Any]:
    app = get_app()
    success, message, data = await app.auth.login(email, password)
    return respond(app, success, message, session_id, **(data or {}))


@with_error_handling("Logout failed")
async def logout(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    success, message, _ = await app.auth.logout()
    return respond(app, success, message, session_id)


@with_error_handling("Failed to check session")
async def get_auth_status(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    """Verify the stored token and report the signed-in user"""
    app = get_app()
    success, message, data = await app.auth.check_auth()
    return respond(app, success, message, session_id,
                   is_authenticated=app.store.is_authenticated, **(data or {}))


@with_error_handling("Failed to verify OTP")
async def verify_otp(session_id: Optional[str] = None, otp: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    success, message, data = await app.otp.verify_otp(otp)
    return respond(app, success, message, session_id, **(data or {}))


@with_error_handling("Failed to resend OTP")
async def resend_otp(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    success, message, data = await app.otp.resend_otp()
    return respond(app, success, message, session_id, **(data or {}))


@with_error_handling("Failed to read OTP cooldown")
async def get_otp_cooldown(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    remaining = app.otp.remaining_cooldown()
    message = "You can request a new OTP" if remaining == 0 else f"Resend available in {remaining}s"
    return respond(app, True, message, session_id, remaining_seconds=remaining,
                   email=app.otp.signup_email)


@with_error_handling("Failed to change password")
async def change_password(session_id: Optional[str] = None, current_password: str = "",
                          new_password: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    success, message, _ = await app.auth.change_password(current_password, new_password)
    return respond(app, success, message, session_id)


@with_error_handling("Failed to send reset email")
async def forgot_password(session_id: Optional[str] = None, email: str = "", **kwargs) -> Dict[str, Any]:
    app = get_app()
    success, message, _ = await app.auth.forgot_password(email)
    return respond(app, success, message, session_id)


@with_error_handling("Failed to reset password")
async def reset_password(session_id: Optional[str] = None, token: str = "", password: str = "",
                         **kwargs) -> Dict[str, Any]:
    """Verify the reset token, then set the new password"""
    app = get_app()
    valid, message, _ = await app.auth.verify_reset_token(token)
    if not valid:
        return respond(app, False, message, session_id)
    success, message, _ = await app.auth.reset_password(token, password)
    return respond(app, success, message, session_id)
