"""Decorators shared by the MCP adapters"""

import asyncio
import functools
from typing import Callable

from ..protocol.errors import ErrorHandler, MarketplaceError
from .logger import get_logger

logger = get_logger(__name__)


def with_error_handling(default_message: str = "An error occurred"):
    """
    Decorator to standardize error handling across adapters.

    Adapters normally convert expected failures themselves; this catches
    whatever escapes and returns the standard failure envelope instead of
    letting the tool call die.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            session_id = kwargs.get("session_id")
            try:
                return await func(*args, **kwargs)
            except asyncio.TimeoutError:
                logger.error(f"Timeout in {func.__name__}")
                return {
                    "success": False,
                    "message": "Operation timed out. Please try again.",
                    "session": {"session_id": session_id},
                    "error_type": "timeout"
                }
            except MarketplaceError as e:
                logger.error(f"Error in {func.__name__}: {e}")
                return {
                    "success": False,
                    "message": ErrorHandler.user_message(e, default_message),
                    "session": {"session_id": session_id},
                    "error_type": e.kind.value
                }
            except Exception as e:
                logger.error(f"Error in {func.__name__}: {e}", exc_info=True)
                return {
                    "success": False,
                    "message": f"{default_message}: {e}",
                    "session": {"session_id": session_id},
                    "error_type": "exception"
                }
        return wrapper
    return decorator
