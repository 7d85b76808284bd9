"""Redis metadata backend."""

import logging
from typing import Optional

import redis

from vintagecam.storage.base import MetadataBackend
from vintagecam.storage.exceptions import StorageConnectionError, StorageError

logger = logging.getLogger(__name__)


class RedisBackend(MetadataBackend):
    """Metadata backend on a Redis server.

    Expiry is delegated to the server through ``SET ... EX``.

    Attributes:
        url: Redis connection URL
        connect_timeout: Socket connect timeout in seconds
    """

    name = "redis"

    def __init__(
        self,
        url: str,
        connect_timeout: float = 5.0,
        socket_timeout: Optional[float] = 5.0,
        client: Optional[redis.Redis] = None
    ) -> None:
        """Initialize Redis backend.

        Args:
            url: Redis connection URL (redis://host:port/db)
            connect_timeout: Socket connect timeout in seconds
            socket_timeout: Socket read/write timeout in seconds
            client: Optional pre-built client (used by tests)
        """
        self.url = url
        self.connect_timeout = connect_timeout
        self.socket_timeout = socket_timeout
        self._client = client

    @property
    def client(self) -> redis.Redis:
        """Lazily created Redis client."""
        if self._client is None:
            self._client = redis.Redis.from_url(
                self.url,
                socket_connect_timeout=self.connect_timeout,
                socket_timeout=self.socket_timeout,
                decode_responses=True
            )
        return self._client

    def connect(self) -> None:
        """Ping the server.

        Raises:
            StorageConnectionError: If the server is unreachable
        """
        try:
            self.client.ping()
        except redis.RedisError as e:
            raise StorageConnectionError(str(e), backend=self.name) from e
        logger.info(f"Connected to Redis at {_redact(self.url)}")

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        try:
            if ttl_seconds:
                result = self.client.set(key, value, ex=int(ttl_seconds))
            else:
                result = self.client.set(key, value)
        except redis.RedisError as e:
            raise StorageError(f"Redis SET failed for {key}: {e}") from e
        return bool(result)

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            raise StorageError(f"Redis GET failed for {key}: {e}") from e

    def close(self) -> None:
        if self._client is None:
            return
        try:
            self._client.close()
        except redis.RedisError as e:
            logger.warning(f"Error closing Redis connection: {e}")
        self._client = None


def _redact(url: str) -> str:
    """Hide the password part of a connection URL for logging."""
    if "@" not in url:
        return url
    scheme, _, rest = url.partition("://")
    return f"{scheme}://***@{rest.split('@', 1)[1]}"
