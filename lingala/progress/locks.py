"""Per-(user, lesson) write serialization.

A progress update reads the stored row, derives the new state and
writes it back. Holding one of these locks across that sequence keeps
two ticks for the same row from interleaving. With Redis the lock is
shared by every API instance; without it only this process is covered.

The Redis lease must outlive the guarded section, otherwise a second
writer can take the key while the first is still writing.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from redis.exceptions import LockError, RedisError

from lingala.core.database.query import DEFAULT_QUERY_TIMEOUT
from lingala.core.errors import UpstreamTimeoutError, UpstreamUnavailableError
from lingala.core.redis import progress_lock_key


if TYPE_CHECKING:
    from redis.asyncio import Redis


logger = structlog.get_logger(__name__)

LEASE_MARGIN_SECONDS = 5.0


def lease_for(query_timeout: float) -> float:
    """Redis lease that covers a locked read-then-write of progress."""
    # one SELECT and one INSERT, each bounded by ``query_timeout``
    return 2 * query_timeout + LEASE_MARGIN_SECONDS


class ProgressLocks:
    """Keyed locks for progress rows.

    ``timeout`` bounds how long a writer waits for the lock. ``lease_seconds``
    is how long a Redis lock lives before it expires on its own.
    """

    def __init__(
        self,
        redis: "Redis | None" = None,
        timeout: float = 5.0,
        lease_seconds: float | None = None,
    ):
        self.redis = redis
        self.timeout = timeout
        self.lease_seconds = (
            lease_seconds
            if lease_seconds is not None
            else lease_for(DEFAULT_QUERY_TIMEOUT)
        )
        self._local: dict[tuple[UUID, UUID], asyncio.Lock] = {}
        self._holders: defaultdict[tuple[UUID, UUID], int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, user_id: UUID, lesson_id: UUID) -> AsyncIterator[None]:
        """Hold the lock for one progress row.

        Raises:
            UpstreamTimeoutError: lock not obtained within ``timeout``
            UpstreamUnavailableError: Redis failed while acquiring
        """
        if self.redis is not None:
            async with self._hold_distributed(user_id, lesson_id):
                yield
        else:
            async with self._hold_local(user_id, lesson_id):
                yield

    @asynccontextmanager
    async def _hold_distributed(
        self, user_id: UUID, lesson_id: UUID
    ) -> AsyncIterator[None]:
        name = progress_lock_key(str(user_id), str(lesson_id))
        lock = self.redis.lock(
            name, timeout=self.lease_seconds, blocking_timeout=self.timeout
        )

        try:
            acquired = await lock.acquire()
        except RedisError as e:
            logger.error("progress_lock_redis_error", error=str(e))
            raise UpstreamUnavailableError from e

        if not acquired:
            raise UpstreamTimeoutError("Progress update already in flight")

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Held past the lease; the write has already happened
                logger.warning(
                    "progress_lock_expired",
                    user_id=str(user_id),
                    lesson_id=str(lesson_id),
                )

    @asynccontextmanager
    async def _hold_local(self, user_id: UUID, lesson_id: UUID) -> AsyncIterator[None]:
        key = (user_id, lesson_id)
        lock = self._local.setdefault(key, asyncio.Lock())
        self._holders[key] += 1

        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
            except TimeoutError as e:
                raise UpstreamTimeoutError("Progress update already in flight") from e

            try:
                yield
            finally:
                lock.release()
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._local[key]

    def __len__(self) -> int:
        """Number of rows with a local lock currently in use."""
        return len(self._local)
