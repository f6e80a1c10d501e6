"""
Valkey (Redis-compatible) storage for login sessions.

Values are JSON documents with an optional TTL. The connection is verified
at construction; operations raise redis errors rather than degrading.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    JSON key/value access over redis-py.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set_json("session:abc", {"account_id": "..."}, expire_seconds=3600)
        record = client.get_json("session:abc")  # None if missing or expired
    """

    def __init__(self, url: str):
        """
        Raises:
            redis.ConnectionError: If Valkey is unreachable
        """
        self._client = redis.from_url(url, decode_responses=True)
        self._client.ping()
        logger.info("Connected to Valkey")

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None:
        encoded = json.dumps(value)
        if expire_seconds is None:
            self._client.set(key, encoded)
        else:
            self._client.setex(key, expire_seconds, encoded)

    def get_json(self, key: str) -> dict | list | None:
        """
        Decoded value, or None when the key is absent or expired.

        Raises:
            ValueError: Stored value is not JSON.
        """
        raw = self._client.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}") from e

    def delete(self, key: str) -> bool:
        """True if the key existed."""
        return self._client.delete(key) > 0

    def close(self) -> None:
        self._client.close()
        logger.info("Valkey connection closed")
