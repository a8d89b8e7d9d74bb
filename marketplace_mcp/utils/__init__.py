"""Utility modules for MCP Server"""

from .logger import get_logger, setup_mcp_logging
from .decorators import with_error_handling
from .notifier import ToastNotifier

__all__ = [
    "get_logger",
    "setup_mcp_logging",
    "with_error_handling",
    "ToastNotifier"
]
