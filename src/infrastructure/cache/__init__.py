# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cache infrastructure using Redis.

This package provides the Redis client backing the grade sheet cache.
The cache is a disposable derived view: it may be flushed at any time.

Example:
    from src.infrastructure.cache import init_redis, get_redis

    # Initialize at application startup
    await init_redis(settings)

    # Get the Redis client
    redis = get_redis()

    # Cleanup at shutdown
    await close_redis()
"""

from src.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    init_redis,
)

__all__ = [
    "RedisClient",
    "RedisError",
    "close_redis",
    "get_redis",
    "init_redis",
]
