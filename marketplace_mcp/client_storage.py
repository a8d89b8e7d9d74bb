"""Client-side key/value persistence.

Two areas are exposed: ``local`` survives restarts (redis or memory backed)
and ``session`` lives for the lifetime of the process.
"""

import json
from typing import Any, Dict, Iterable, Optional

import redis

from .config import StorageConfig
from .utils.logger import get_logger

logger = get_logger(__name__)


# Local area keys
ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
USER_KEY = "user"
OTP_RESEND_KEY = "otp_resend_timestamp"
CART_STORAGE_KEY = "cart-storage"

# Session area keys
SIGNUP_EMAIL_KEY = "signup_email"


class MemoryStorageBackend:
    """Dict backed storage area"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value

    def delete(self, key: str):
        self._data.pop(key, None)

    def keys(self) -> Iterable[str]:
        return list(self._data.keys())


class RedisStorageBackend:
    """Redis backed storage area; degrades to no persistence when redis is down"""

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0,
                 prefix: str = "marketplace", client: Optional[redis.Redis] = None):
        self.prefix = prefix
        if client is not None:
            self.client = client
            return
        try:
            self.client = redis.Redis(host=host, port=port, db=db, decode_responses=True)
            self.client.ping()
            logger.info(f"Connected to Redis for client storage (db={db})")
        except redis.exceptions.ConnectionError as e:
            logger.error(f"Could not connect to Redis: {e}. Client storage will not be persisted.")
            self.client = None

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[str]:
        if not self.client:
            return None
        return self.client.get(self._key(key))

    def set(self, key: str, value: str):
        if not self.client:
            return
        self.client.set(self._key(key), value)

    def delete(self, key: str):
        if not self.client:
            return
        self.client.delete(self._key(key))

    def keys(self) -> Iterable[str]:
        if not self.client:
            return []
        start = len(self.prefix) + 1
        return [key[start:] for key in self.client.scan_iter(match=f"{self.prefix}:*")]


class StorageArea:
    """String key/value area with JSON helpers"""

    def __init__(self, name: str, backend):
        self.name = name
        self.backend = backend

    def get_item(self, key: str) -> Optional[str]:
        return self.backend.get(key)

    def set_item(self, key: str, value: Any):
        self.backend.set(key, str(value))

    def remove_item(self, key: str):
        self.backend.delete(key)

    def get_json(self, key: str) -> Optional[Any]:
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"[Storage] Discarding unreadable {self.name} value for '{key}'")
            self.backend.delete(key)
            return None

    def set_json(self, key: str, value: Any):
        self.backend.set(key, json.dumps(value, default=str))

    def clear(self):
        for key in list(self.backend.keys()):
            self.backend.delete(key)


class ClientStorage:
    """Local and session storage areas used by the application state"""

    def __init__(self, local_backend=None, session_backend=None):
        self.local = StorageArea("local", local_backend or MemoryStorageBackend())
        self.session = StorageArea("session", session_backend or MemoryStorageBackend())


def create_client_storage(storage_config: StorageConfig) -> ClientStorage:
    """Build client storage for the configured backend"""
    if storage_config.store_type == "redis":
        local_backend = RedisStorageBackend(
            host=storage_config.redis_host,
            port=storage_config.redis_port,
            db=storage_config.redis_db,
            prefix=storage_config.key_prefix
        )
    else:
        local_backend = MemoryStorageBackend()

    logger.info(f"[Storage] Client storage initialized with store_type={storage_config.store_type}")
    return ClientStorage(local_backend=local_backend)
