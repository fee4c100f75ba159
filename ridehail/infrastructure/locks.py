"""
Redis-based distributed lock.

The dispatch worker takes ``lock:dispatch`` for the length of one cycle
so that, with several API processes running, only one of them walks the
SEARCHING rides at a time.

Acquire is ``SET key token NX EX ttl``; release deletes the key only
while it still holds our token (compare-and-delete in Lua), so a holder
whose TTL already lapsed cannot free somebody else's lock.
"""

from __future__ import annotations

import logging
import uuid

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class LockNotAcquired(RuntimeError):
    """Raised by ``async with`` when another holder owns the lock."""


class DistributedLock:
    def __init__(
        self, client: aioredis.Redis, name: str, ttl_seconds: int = 60
    ):
        self.redis = client
        self.key = f"lock:{name}"
        self.ttl = ttl_seconds
        self.token = uuid.uuid4().hex
        self.held = False

    async def acquire(self) -> bool:
        """Try once, without waiting.  Returns True on success."""
        self.held = bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )
        return self.held

    async def release(self) -> None:
        if not self.held:
            return
        released = await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)
        if not released:
            logger.warning("Lock %s expired before release", self.key)
        self.held = False

    async def __aenter__(self):
        if not await self.acquire():
            raise LockNotAcquired(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *exc_info):
        await self.release()
