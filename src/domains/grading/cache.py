# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sheet cache backed by Redis.

The cache is a disposable view of the database. Every call is bounded
by a timeout and fails open: a read that fails or times out is a miss,
a write or invalidation that fails is logged and ignored.

Each sheet has a generation counter next to it. Invalidation bumps the
counter, and a sheet is only stored if the counter has not moved since
the reader started assembling it.
"""

import asyncio
import logging
from typing import Any, Awaitable, TypeVar

from pydantic import ValidationError

from src.domains.grading.schemas import Sheet
from src.infrastructure.cache import RedisClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_PREFIX = "grade_sheet"
DEFAULT_TTL_SECONDS = 3600
DEFAULT_TIMEOUT_SECONDS = 0.5


def sheet_cache_key(level_id: str, cycle_id: str) -> str:
    """Cache key for a (level, cycle) sheet."""
    return f"{KEY_PREFIX}:{level_id}:{cycle_id}"


def sheet_generation_key(level_id: str, cycle_id: str) -> str:
    """Counter bumped by every invalidation of a sheet."""
    return f"{sheet_cache_key(level_id, cycle_id)}:gen"


class SheetCache:
    """Fail-open cache of assembled sheets.

    Attributes:
        ttl_seconds: Lifetime of a cached sheet.
        timeout_seconds: Upper bound for each cache call.
    """

    def __init__(
        self,
        redis: RedisClient | None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._redis = redis
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds

    async def _call(self, operation: str, key: str, awaitable: Awaitable[T]) -> tuple[bool, T | None]:
        """Run a cache call with the timeout, absorbing failures.

        Returns:
            (succeeded, result).
        """
        try:
            return True, await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Sheet cache %s timed out for %s", operation, key)
        except Exception as e:
            logger.error("Sheet cache %s failed for %s: %s", operation, key, str(e))
        return False, None

    async def get(self, level_id: str, cycle_id: str) -> Sheet | None:
        """Get a cached sheet, or None on miss or failure."""
        if self._redis is None:
            return None
        key = sheet_cache_key(level_id, cycle_id)
        ok, cached = await self._call("read", key, self._redis.get(key))
        if not ok or cached is None:
            return None
        try:
            return Sheet.model_validate(cached)
        except ValidationError as e:
            logger.warning("Discarding unreadable cached sheet %s: %s", key, str(e))
            return None

    async def generation(self, level_id: str, cycle_id: str) -> int | None:
        """Current invalidation generation of a sheet.

        Read it before assembling a sheet and hand it to put(). Returns
        None if it cannot be read, in which case the sheet is not cached.
        """
        if self._redis is None:
            return None
        key = sheet_generation_key(level_id, cycle_id)
        ok, value = await self._call("generation read", key, self._redis.get(key))
        if not ok:
            return None
        return int(value) if value is not None else 0

    async def put(
        self, level_id: str, cycle_id: str, sheet: Sheet, generation: int | None
    ) -> bool:
        """Store a sheet assembled at the given generation.

        The write is dropped if an invalidation happened since the
        generation was read, so a slow reader cannot restore a sheet
        older than the last write.

        Returns:
            False if the write was dropped or failed.
        """
        if self._redis is None or generation is None:
            return False
        key = sheet_cache_key(level_id, cycle_id)
        payload: dict[str, Any] = sheet.model_dump(mode="json")
        ok, written = await self._call(
            "write",
            key,
            self._redis.set_if_counter(
                key,
                payload,
                sheet_generation_key(level_id, cycle_id),
                generation,
                expire_seconds=self.ttl_seconds,
            ),
        )
        if ok and not written:
            logger.debug("Skipped caching stale sheet %s", key)
        return bool(ok and written)

    async def invalidate(self, level_id: str, cycle_id: str) -> bool:
        """Drop a cached sheet and bump its generation.

        Returns:
            False if either step failed.
        """
        if self._redis is None:
            return False
        key = sheet_cache_key(level_id, cycle_id)
        bumped, _ = await self._call(
            "invalidate", key, self._redis.incr(sheet_generation_key(level_id, cycle_id))
        )
        deleted, _ = await self._call("invalidate", key, self._redis.delete(key))
        if bumped and deleted:
            logger.debug("Invalidated sheet cache %s", key)
        return bumped and deleted
