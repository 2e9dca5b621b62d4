from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ezevent.core.config import settings

_BASELINE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    # the browser scanner asks for the camera itself; the API never needs it
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}


def _carries_credentials(request: Request) -> bool:
    return "authorization" in request.headers or request.url.path.startswith("/api/auth/")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)

        if not settings.security_headers_enabled:
            return response

        for name, value in _BASELINE_HEADERS.items():
            response.headers.setdefault(name, value)

        # tokens and QR check-in codes must not land in shared caches
        if _carries_credentials(request):
            response.headers.setdefault("Cache-Control", "no-store")

        if settings.env != "local":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=63072000; includeSubDomains",
            )

        return response
