"""Redis-based locks that keep scheduled jobs from overlapping.

Under ``taskiq_testing`` the locks live in a process-local dict instead, so
tests and the in-memory broker need no Redis server.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from time import monotonic

from redis.asyncio import Redis

from omahub.config import get_settings

_MEMORY_LOCKS: dict[str, float] = {}


def build_dedup_key(*, scope: str, task_name: str, fingerprint: str) -> str:
    return f"dedup:{scope}:{task_name}:{fingerprint}"


def _take_memory_lock(key: str, ttl_seconds: int) -> bool:
    now = monotonic()
    expired = [name for name, expires_at in _MEMORY_LOCKS.items() if expires_at <= now]
    for name in expired:
        del _MEMORY_LOCKS[name]

    if key in _MEMORY_LOCKS:
        return False
    _MEMORY_LOCKS[key] = now + ttl_seconds
    return True


def _redis_client() -> Redis:
    return Redis.from_url(
        get_settings().redis_url, encoding="utf-8", decode_responses=True
    )


async def acquire_dedup_lock(key: str, ttl_seconds: int) -> bool:
    """Take the lock with ``SET NX EX``; ``False`` if someone else holds it."""

    if get_settings().taskiq_testing:
        return _take_memory_lock(key, ttl_seconds)

    client = _redis_client()
    try:
        return bool(await client.set(key, "1", nx=True, ex=ttl_seconds))
    finally:
        await client.aclose()


async def release_dedup_lock(key: str) -> None:
    if get_settings().taskiq_testing:
        _MEMORY_LOCKS.pop(key, None)
        return

    client = _redis_client()
    try:
        await client.delete(key)
    finally:
        await client.aclose()


@asynccontextmanager
async def dedup_lock(key: str, ttl_seconds: int) -> AsyncIterator[bool]:
    """Yield whether the lock was acquired; release it on exit if it was."""

    acquired = await acquire_dedup_lock(key, ttl_seconds)
    try:
        yield acquired
    finally:
        if acquired:
            await release_dedup_lock(key)
