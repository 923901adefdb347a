"""
Admission locks keyed by (provider_id, date).

Validate + insert for one provider-day runs under this lock in addition to
the serializable transaction, so storage backends that cannot detect the
write skew themselves still never admit two overlapping bookings.

In-process locks cover a single worker; Redis locks cover every worker
sharing the same Redis.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional

import redis

from .config import REDIS_URL, SLOT_LOCK_TIMEOUT_SEC, SLOT_LOCK_WAIT_SEC
from .exceptions import ConflictError, InfrastructureError

logger = logging.getLogger(__name__)

LOCK_BUSY_MESSAGE = "Someone is booking this day right now, please pick a slot again"


def lock_key(provider_id: int, day: date) -> str:
    return f"slotbook:admission:{provider_id}:{day.isoformat()}"


class InProcessSlotLock:
    """Per-key threading locks, dropped once no caller holds or waits on them."""

    def __init__(self, wait_timeout: float = SLOT_LOCK_WAIT_SEC):
        self.wait_timeout = wait_timeout
        self._locks: dict[str, list] = {}  # key -> [lock, users]
        self._registry_lock = threading.Lock()

    def _checkout(self, key: str) -> threading.Lock:
        with self._registry_lock:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] <= 0:
                del self._locks[key]

    @contextmanager
    def hold(self, provider_id: int, day: date) -> Iterator[None]:
        key = lock_key(provider_id, day)
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=self.wait_timeout):
                logger.warning(f"⚠️ Admission lock busy: {key}")
                raise ConflictError(LOCK_BUSY_MESSAGE)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)


class RedisSlotLock:
    """Distributed admission lock on top of redis-py's Lock."""

    def __init__(
        self,
        client: redis.Redis,
        timeout: float = SLOT_LOCK_TIMEOUT_SEC,
        wait_timeout: float = SLOT_LOCK_WAIT_SEC,
    ):
        self.client = client
        self.timeout = timeout
        self.wait_timeout = wait_timeout

    @contextmanager
    def hold(self, provider_id: int, day: date) -> Iterator[None]:
        key = lock_key(provider_id, day)
        lock = self.client.lock(key, timeout=self.timeout, blocking_timeout=self.wait_timeout)
        try:
            acquired = lock.acquire()
        except redis.RedisError as e:
            logger.error(f"❌ Redis admission lock unavailable for {key}: {e}")
            raise InfrastructureError("Booking service temporarily unavailable") from e

        if not acquired:
            logger.warning(f"⚠️ Admission lock busy: {key}")
            raise ConflictError(LOCK_BUSY_MESSAGE)

        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                # Expired while held; the transaction already decided the outcome
                logger.warning(f"⚠️ Admission lock expired before release: {key}")
            except redis.RedisError as e:
                logger.error(f"❌ Failed to release admission lock {key}: {e}")


redis_client: Optional[redis.Redis] = None
_default_lock = None
_default_lock_guard = threading.Lock()


def get_redis_client() -> redis.Redis:
    """Get or create the Redis client used for admission locks"""
    global redis_client

    if redis_client is None:
        if "@" in REDIS_URL:
            protocol = REDIS_URL.split("@")[0].split(":")[0]
            masked_url = f"{protocol}:****@{REDIS_URL.split('@')[1]}"
        else:
            masked_url = REDIS_URL
        logger.info(f"📡 Using Redis for admission locks: {masked_url}")

        redis_client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
    return redis_client


def get_slot_lock():
    """Redis lock when REDIS_URL is configured, process-local lock otherwise"""
    global _default_lock

    with _default_lock_guard:
        if _default_lock is None:
            if REDIS_URL:
                _default_lock = RedisSlotLock(get_redis_client())
            else:
                logger.info("🔒 REDIS_URL not set - using in-process admission locks")
                _default_lock = InProcessSlotLock()
        return _default_lock
