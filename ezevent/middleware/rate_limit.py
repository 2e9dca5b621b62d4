from __future__ import annotations

import time

from fastapi import Request
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from ezevent.core.config import settings
from ezevent.redis_client import get_redis

AUTH_PATHS = frozenset({"/api/auth/login", "/api/auth/register"})

_WINDOWS = {
    "sec": 1,
    "second": 1,
    "seconds": 1,
    "min": 60,
    "minute": 60,
    "minutes": 60,
    "hour": 3600,
    "hours": 3600,
    "day": 86400,
    "days": 86400,
}


def parse_rate(rate: str) -> tuple[int, int]:
    """Parse "60/minute" style limits into (limit, window_seconds)."""
    raw = rate.strip().lower()
    limit_str, sep, window_str = raw.partition("/")
    if not sep:
        raise ValueError(f"Invalid rate format: {rate}")

    window = _WINDOWS.get(window_str.strip())
    if window is None:
        raise ValueError(f"Invalid rate window: {window_str}")
    return int(limit_str), window


def rate_for_path(path: str) -> tuple[str, str]:
    """Return (bucket name, rate) for a request path."""
    if path in AUTH_PATHS:
        return "auth", settings.rate_limit_auth
    return "default", settings.rate_limit_default


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limit per client IP, counted in Redis. Fails open."""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if (
            not settings.rate_limit_enabled
            or request.method == "OPTIONS"
            or path in settings.rate_limit_exempt_paths
        ):
            return await call_next(request)

        bucket_name, rate = rate_for_path(path)
        try:
            limit, window_seconds = parse_rate(rate)
        except ValueError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = int(time.time())
        window = now // window_seconds
        reset = (window + 1) * window_seconds
        # login attempts share one counter per IP, everything else is per endpoint
        scope = bucket_name if bucket_name == "auth" else f"{request.method}:{path}"
        key = f"ezevent:rl:{client_ip}:{scope}:{window_seconds}:{window}"

        try:
            r = get_redis()
            count = int(r.incr(key))
            if count == 1:
                r.expire(key, window_seconds)
        except RedisError:
            return await call_next(request)

        if count > limit:
            return JSONResponse(
                status_code=429,
                content={"detail": "rate limit exceeded"},
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset),
                    "Retry-After": str(max(0, reset - now)),
                },
            )

        response = await call_next(request)
        response.headers.setdefault("X-RateLimit-Limit", str(limit))
        response.headers.setdefault("X-RateLimit-Remaining", str(max(0, limit - count)))
        response.headers.setdefault("X-RateLimit-Reset", str(reset))
        return response
