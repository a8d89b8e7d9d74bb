"""Configuration management for the Marketplace Shopping MCP Server"""

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv
import logging

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


@dataclass
class APIConfig:
    """Marketplace REST backend"""
    backend_endpoint: str = field(default_factory=lambda: os.getenv("BACKEND_ENDPOINT", ""))
    timeout: float = field(default_factory=lambda: float(os.getenv("API_TIMEOUT", "30")))
    debug_curl: bool = field(default_factory=lambda: _env_flag("DEBUG_CURL_LOGGING"))


@dataclass
class StorageConfig:
    """Where the client's local storage area lives (memory or redis)"""
    store_type: str = field(default_factory=lambda: os.getenv("CLIENT_STORE", "memory").lower())
    redis_host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    redis_port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    redis_db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB_CLIENT", "0")))
    key_prefix: str = field(default_factory=lambda: os.getenv("CLIENT_STORE_PREFIX", "marketplace"))


@dataclass
class CheckoutConfig:
    # flat local delivery fee, per order
    delivery_base_fee: float = field(default_factory=lambda: float(os.getenv("DELIVERY_BASE_FEE", "39")))


@dataclass
class OtpConfig:
    resend_cooldown_seconds: int = field(
        default_factory=lambda: int(os.getenv("OTP_RESEND_COOLDOWN_SECONDS", "60")))
    otp_length: int = 6


@dataclass
class LoggingConfig:
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Config:
    """Main configuration class, read from the environment at import time"""

    def __init__(self):
        self.api = APIConfig()
        self.storage = StorageConfig()
        self.checkout = CheckoutConfig()
        self.otp = OtpConfig()
        self.logging = LoggingConfig()

    def configure_logging(self):
        """stderr logging plus the LOG_FILE handler when one is set"""
        from .utils.logger import setup_mcp_logging

        root_logger = setup_mcp_logging(debug=self.logging.level.upper() == "DEBUG")
        if not self.logging.file:
            return

        try:
            log_dir = os.path.dirname(self.logging.file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(self.logging.file)
        except OSError as e:
            logging.warning(f"Could not create log file {self.logging.file}: {e}")
            return

        file_handler.setLevel(root_logger.level)
        file_handler.setFormatter(logging.Formatter(self.logging.format))
        root_logger.addHandler(file_handler)

    def errors(self) -> List[str]:
        problems = []
        if not self.api.backend_endpoint:
            problems.append("BACKEND_ENDPOINT is required")
        if self.storage.store_type not in ("memory", "redis"):
            problems.append(f"CLIENT_STORE must be 'memory' or 'redis', got '{self.storage.store_type}'")
        if self.checkout.delivery_base_fee < 0:
            problems.append("DELIVERY_BASE_FEE must not be negative")
        if self.otp.resend_cooldown_seconds <= 0:
            problems.append("OTP_RESEND_COOLDOWN_SECONDS must be positive")
        return problems

    def validate(self) -> bool:
        """Log every configuration problem; False if there was any"""
        problems = self.errors()
        for problem in problems:
            logging.error(f"Configuration error: {problem}")
        return not problems

    def to_dict(self) -> Dict[str, Any]:
        return {
            "api": asdict(self.api),
            "storage": asdict(self.storage),
            "checkout": asdict(self.checkout),
            "otp": asdict(self.otp),
            "logging": {"level": self.logging.level, "file": self.logging.file},
        }


# Global configuration instance
config = Config()
