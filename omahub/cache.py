"""Redis cache helpers for shared, TTL-bound lookups."""

import json
from typing import Any

from redis.asyncio import Redis

from omahub.config import get_settings

ADMIN_EMAIL_CONFIG_KEY = "settings:admin_email_config"


def _client(*, decode_responses: bool = False) -> Redis:
    return Redis.from_url(
        get_settings().redis_url,
        encoding="utf-8",
        decode_responses=decode_responses,
    )


async def cache_get(key: str) -> Any | None:
    """Return the decoded JSON value stored under ``key``, if any."""

    client = _client(decode_responses=True)
    try:
        value = await client.get(key)
    finally:
        await client.aclose()
    return json.loads(value) if value else None


async def cache_set(key: str, value: Any, ttl_seconds: int) -> None:
    if ttl_seconds <= 0:
        return

    json_value = json.dumps(value)
    client = _client()
    try:
        await client.set(key, json_value, ex=ttl_seconds)
    finally:
        await client.aclose()


async def cache_delete(key: str) -> None:
    client = _client()
    try:
        await client.delete(key)
    finally:
        await client.aclose()
