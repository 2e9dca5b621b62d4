from __future__ import annotations

from functools import lru_cache

from redis import Redis
from redis.connection import ConnectionPool

from ezevent.core.config import settings

# Redis only backs rate limiting, so a dead server should cost milliseconds, not seconds
SOCKET_TIMEOUT_SECONDS = 0.25


@lru_cache(maxsize=1)
def _pool() -> ConnectionPool:
    return ConnectionPool.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=SOCKET_TIMEOUT_SECONDS,
        socket_connect_timeout=SOCKET_TIMEOUT_SECONDS,
    )


def get_redis() -> Redis:
    return Redis(connection_pool=_pool())
