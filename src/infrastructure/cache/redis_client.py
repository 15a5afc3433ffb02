# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis client for the grade sheet cache.

This module provides an async Redis client wrapper with JSON
serialization. Library errors are wrapped in RedisError so callers can
decide whether a failure is fatal; the grade sheet cache treats every
RedisError as a miss or a logged no-op.

Example:
    from src.infrastructure.cache import init_redis, get_redis

    # Initialize at startup
    await init_redis(settings)

    # Use the client
    redis = get_redis()
    await redis.set_if_counter(
        "grade_sheet:lvl:cyc", sheet_dict, "grade_sheet:lvl:cyc:gen", 0, expire_seconds=3600
    )
"""

import json
from typing import TYPE_CHECKING, Any, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError as BaseRedisError

if TYPE_CHECKING:
    from src.core.config.settings import Settings

# Module-level state
_redis_client: Optional["RedisClient"] = None

# KEYS[1] counter, KEYS[2] target; ARGV expected, value, ttl ("" for none)
_SET_IF_COUNTER_SCRIPT = """
if (redis.call('GET', KEYS[1]) or '0') ~= ARGV[1] then
    return 0
end
if ARGV[3] == '' then
    redis.call('SET', KEYS[2], ARGV[2])
else
    redis.call('SET', KEYS[2], ARGV[2], 'EX', ARGV[3])
end
return 1
"""


class RedisError(Exception):
    """Exception raised for Redis operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying Redis error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the Redis error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class RedisClient:
    """Async Redis client with JSON serialization.

    This client wraps the redis-py async client and provides:
    - Connection pooling with a bounded socket timeout
    - JSON serialization/deserialization
    - The cache operations used by the grade sheet cache

    Example:
        client = RedisClient(settings)
        await client.connect()

        await client.incr("key:gen")
        await client.set_if_counter("key", {"a": 1}, "key:gen", 1, expire_seconds=60)
        value = await client.get("key")

        await client.close()
    """

    def __init__(self, settings: "Settings") -> None:
        """Initialize the Redis client.

        Args:
            settings: Application settings containing Redis configuration.
        """
        self._settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Create the Redis connection pool.

        Raises:
            RedisError: If connection fails.
        """
        try:
            self._pool = ConnectionPool.from_url(
                self._settings.redis.url,
                max_connections=self._settings.redis.max_connections,
                socket_timeout=self._settings.redis.socket_timeout,
                socket_connect_timeout=self._settings.redis.socket_timeout,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)

            # Verify connection
            await self._redis.ping()
        except BaseRedisError as e:
            raise RedisError("Failed to connect to Redis", e) from e

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    def _ensure_connected(self) -> Redis:
        """Ensure the client is connected.

        Returns:
            The Redis client instance.

        Raises:
            RedisError: If not connected.
        """
        if self._redis is None:
            raise RedisError("Redis client not connected. Call connect() first.")
        return self._redis

    def _serialize(self, value: Any) -> str:
        """Serialize a value to JSON string.

        Args:
            value: The value to serialize.

        Returns:
            JSON string representation.
        """
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False, default=str)

    def _deserialize(self, value: Optional[str]) -> Any:
        """Deserialize a JSON string to Python object.

        Args:
            value: The JSON string to deserialize.

        Returns:
            Python object or None if value is None.
        """
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def get(self, key: str) -> Any:
        """Get a value by key.

        Args:
            key: The key.

        Returns:
            The deserialized value or None if not found.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            value = await redis.get(key)
            return self._deserialize(value)
        except BaseRedisError as e:
            raise RedisError(f"Failed to get key: {key}", e) from e

    async def delete(self, key: str) -> bool:
        """Delete a key.

        Args:
            key: The key to delete.

        Returns:
            True if the key was deleted, False if it didn't exist.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            result = await redis.delete(key)
            return result > 0
        except BaseRedisError as e:
            raise RedisError(f"Failed to delete key: {key}", e) from e

    async def incr(self, key: str) -> int:
        """Increment an integer counter, creating it at 1.

        Args:
            key: The counter key.

        Returns:
            The counter value after the increment.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            return await redis.incr(key)
        except BaseRedisError as e:
            raise RedisError(f"Failed to increment key: {key}", e) from e

    async def set_if_counter(
        self,
        key: str,
        value: Any,
        counter_key: str,
        expected: int,
        expire_seconds: Optional[int] = None,
    ) -> bool:
        """Set a key only while a counter still holds the expected value.

        The check and the write run atomically in one Lua script. A
        missing counter reads as 0.

        Args:
            key: The key to set.
            value: The value (will be JSON serialized if not a string).
            counter_key: The counter guarding the write.
            expected: Counter value the caller observed.
            expire_seconds: Optional expiration time in seconds.

        Returns:
            True if the value was written, False if the counter moved.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            written = await redis.eval(
                _SET_IF_COUNTER_SCRIPT,
                2,
                counter_key,
                key,
                str(expected),
                self._serialize(value),
                str(expire_seconds or ""),
            )
            return bool(written)
        except BaseRedisError as e:
            raise RedisError(f"Failed to set key: {key}", e) from e

    # ========== Health check ==========

    async def ping(self) -> bool:
        """Check if Redis is reachable.

        Returns:
            True if Redis responds to ping, False otherwise.
        """
        try:
            redis = self._ensure_connected()
            await redis.ping()
            return True
        except (RedisError, BaseRedisError):
            return False


# ========== Module-level functions ==========


async def init_redis(settings: "Settings") -> None:
    """Initialize the global Redis client.

    This should be called once at application startup.

    Args:
        settings: Application settings containing Redis configuration.

    Raises:
        RedisError: If connection fails.
    """
    global _redis_client

    _redis_client = RedisClient(settings)
    await _redis_client.connect()


async def close_redis() -> None:
    """Close the global Redis client.

    This should be called at application shutdown.
    """
    global _redis_client

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


def get_redis() -> RedisClient:
    """Get the global Redis client.

    Returns:
        The RedisClient instance.

    Raises:
        RedisError: If Redis has not been initialized.
    """
    if _redis_client is None:
        raise RedisError("Redis not initialized. Call init_redis() first.")
    return _redis_client
