from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..config import settings
from ..logging import get_logger

_log = get_logger()


@lru_cache(maxsize=1)
def get_redis() -> Redis[str]:
    return Redis.from_url(settings.REDIS_URL, decode_responses=True)


def ns(namespace: str, key: str) -> str:
    return f"{namespace}:{key}"


async def get_json(key: str) -> Any | None:
    """Cached JSON value, or None on a miss or when redis is unreachable."""
    try:
        raw = await get_redis().get(key)
    except RedisError as exc:
        _log.warning("cache_read_failed", key=key, error=str(exc))
        return None
    if raw is None:
        return None
    return json.loads(raw)


async def set_json(key: str, value: Any, ttl: int | None = None) -> None:
    data = json.dumps(value)
    try:
        if ttl and ttl > 0:
            await get_redis().set(key, data, ex=ttl)
        else:
            await get_redis().set(key, data)
    except RedisError as exc:
        _log.warning("cache_write_failed", key=key, error=str(exc))


async def ping() -> bool:
    try:
        return bool(await get_redis().ping())
    except Exception:
        return False
