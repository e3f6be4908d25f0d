"""
Distributed locks keyed on formula and repository ids.

Metadata refreshes and history regeneration of the same formula must not
overlap; different formulas may be processed concurrently. Formulas of one
repository share a bare clone, so cloning and fetching it is serialized
per repository.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Optional

import redis
from redis.exceptions import LockError

from formulary.config import settings
from formulary.core.redis import get_redis

logger = logging.getLogger(__name__)

LOCK_PREFIX = "formula_lock"
REPOSITORY_LOCK_PREFIX = "repository_lock"


@contextmanager
def _redis_lock(
    key: str, client: Optional[redis.Redis], timeout: int
) -> Generator[None, None, None]:
    client = client or get_redis()
    lock = client.lock(key, timeout=timeout)

    lock.acquire(blocking=True)
    logger.debug(f"Acquired {key}")
    try:
        yield
    finally:
        try:
            lock.release()
        except LockError:
            logger.warning(f"{key} expired before release")


@contextmanager
def formula_lock(
    formula_id: str,
    client: Optional[redis.Redis] = None,
    timeout: Optional[int] = None,
) -> Generator[None, None, None]:
    """
    Hold an exclusive lock for `formula_id` while the block runs.

    Blocks until the lock is available. The lock expires after `timeout`
    seconds so a crashed worker cannot hold it forever.
    """
    with _redis_lock(
        f"{LOCK_PREFIX}:{formula_id}",
        client,
        timeout or settings.FORMULA_LOCK_TIMEOUT,
    ):
        yield


@contextmanager
def repository_lock(
    repository_id: str,
    client: Optional[redis.Redis] = None,
    timeout: Optional[int] = None,
) -> Generator[None, None, None]:
    """Hold an exclusive lock on the local clone of `repository_id`."""
    with _redis_lock(
        f"{REPOSITORY_LOCK_PREFIX}:{repository_id}",
        client,
        timeout or settings.REPOSITORY_LOCK_TIMEOUT,
    ):
        yield
