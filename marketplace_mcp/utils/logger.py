"""Logging for the marketplace MCP server.

stdout carries the MCP JSON-RPC stream, so every handler here writes to
stderr or to a file. Tool calls get one structured JSON line per event
on the ``mcp_operations`` logger.
"""

import logging
import sys
import json
import os
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List


SENSITIVE_KEYS = {
    "password", "new_password", "current_password", "otp", "cvv", "card_number",
    "cardNumber", "access_token", "refresh_token", "accessToken", "refreshToken",
    "token", "account_number", "accountNumber", "routing_number", "routingNumber",
}

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
QUIET_LIBRARIES = ("httpx", "httpcore", "mcp.server.lowlevel")

# BASIC logs outcomes only, FULL adds masked payloads, RAW skips truncation
DEBUG_LEVELS = ("BASIC", "FULL", "RAW")


def _level_from_name(name: str) -> int:
    level = getattr(logging, name.upper(), None)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Module logger, optionally pinned to a level name."""
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(_level_from_name(level))
    return logger


def setup_mcp_logging(debug: bool = False) -> logging.Logger:
    """
    Route the root logger to stderr.

    Args:
        debug: Force DEBUG regardless of LOG_LEVEL
    """
    level = logging.DEBUG if debug else _level_from_name(os.getenv('LOG_LEVEL', 'INFO'))

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


def mask_sensitive(data: Any) -> Any:
    """Return a copy of data with credentials and card details masked"""
    if isinstance(data, dict):
        return {
            key: "***" if key in SENSITIVE_KEYS and value else mask_sensitive(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item) for item in data]
    return data


class MCPOperationsLogger:
    """One JSON line per tool request, response and failure."""

    def __init__(self, log_file: Optional[str] = None, debug_level: Optional[str] = None):
        level = (debug_level or os.getenv('MCP_DEBUG_LEVEL', 'BASIC')).upper()
        self.debug_level = level if level in DEBUG_LEVELS else 'BASIC'
        self.max_log_size = int(os.getenv('MCP_LOG_MAX_SIZE', '5000'))
        self.log_file = log_file or os.getenv('MCP_OPERATIONS_LOG')

        self.logger = logging.getLogger('mcp_operations')
        self.logger.setLevel(logging.DEBUG)
        if self.log_file and not self.logger.handlers:
            self._attach_file(self.log_file)

    def _attach_file(self, path: str):
        try:
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            handler = logging.FileHandler(path)
        except OSError as e:
            # Records still propagate to the root stderr handler
            self.logger.error(f"Cannot open operations log {path}, using stderr: {e}")
            return

        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        self.logger.addHandler(handler)
        self.logger.info(f"Operations log at {path} (debug_level={self.debug_level})")

    def _payload(self, data: Any) -> Any:
        """Masked copy, cut down to max_log_size unless debug_level is RAW"""
        masked = mask_sensitive(data)
        if self.debug_level == 'RAW':
            return masked

        encoded = json.dumps(masked, default=str)
        if len(encoded) <= self.max_log_size:
            return masked
        return {"_truncated": True, "_size": len(encoded), "_data": encoded[:self.max_log_size] + '...'}

    def _emit(self, level: int, tag: str, event_type: str, tool_name: str, session_id: str, **fields):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "tool": tool_name,
            "session_id": session_id if len(session_id) <= 16 else session_id[:16] + "...",
        }
        entry.update(fields)
        self.logger.log(level, f"[{tag}] {json.dumps(entry, separators=(',', ':'), default=str)}")

    def log_tool_request(self, tool_name: str, session_id: str, request_data: Dict[str, Any]):
        if self.debug_level == 'BASIC':
            return
        self._emit(logging.INFO, "REQUEST", "mcp_request", tool_name, session_id,
                   request=self._payload(request_data))

    def log_tool_response(self, tool_name: str, session_id: str, response_data: Dict[str, Any],
                          execution_time_ms: float, backend_calls: List[str] = None, status: str = "success"):
        if self.debug_level == 'BASIC':
            response = {
                "success": response_data.get("success", True),
                "message": str(response_data.get("message", ""))[:200],
                "toasts": len(response_data.get("toasts") or []),
            }
        else:
            response = self._payload(response_data)

        self._emit(logging.INFO, "RESPONSE", "mcp_response", tool_name, session_id,
                   execution_time_ms=round(execution_time_ms, 2), status=status,
                   backend_calls=backend_calls or [], response=response)

    def log_tool_error(self, tool_name: str, session_id: str, error: Exception, execution_time_ms: float):
        self._emit(logging.ERROR, "ERROR", "mcp_error", tool_name, session_id,
                   execution_time_ms=round(execution_time_ms, 2), status="error",
                   error={"type": type(error).__name__, "message": str(error)[:500]})


_mcp_operations_logger = None


def get_mcp_operations_logger() -> MCPOperationsLogger:
    """Process-wide operations logger"""
    global _mcp_operations_logger
    if _mcp_operations_logger is None:
        _mcp_operations_logger = MCPOperationsLogger()
    return _mcp_operations_logger
