from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ezevent.auth.capabilities import AuthContext
from ezevent.auth.jwt import verify_access_token
from ezevent.db import get_db
from ezevent.models import User
from ezevent.models.user import UserRole

DBSession = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if auth is None:
        return None
    scheme, _, token = auth.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise _unauthorized("malformed authorization header")
    return token.strip()


def _context_from_token(token: str) -> AuthContext:
    try:
        claims = verify_access_token(token)
    except ValueError:
        raise _unauthorized("invalid or expired token") from None

    try:
        return AuthContext(
            user_id=uuid.UUID(claims["sub"]),
            email=claims["email"],
            role=UserRole(claims["role"]),
        )
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("invalid token claims") from None


def get_auth_context(request: Request) -> AuthContext:
    token = _bearer_token(request)
    if token is None:
        raise _unauthorized("missing bearer token")
    return _context_from_token(token)


def get_optional_auth_context(request: Request) -> AuthContext | None:
    """Like get_auth_context, but anonymous callers get None instead of a 401."""
    token = _bearer_token(request)
    if token is None:
        return None
    return _context_from_token(token)


Auth = Annotated[AuthContext, Depends(get_auth_context)]
OptionalAuth = Annotated[AuthContext | None, Depends(get_optional_auth_context)]


def require_role(*roles: UserRole):
    allowed = frozenset(roles)

    def _dependency(ctx: Auth) -> AuthContext:
        if ctx.role not in allowed:
            raise HTTPException(status_code=403, detail="forbidden")
        return ctx

    return _dependency


def get_current_user(ctx: Auth, db: DBSession) -> User:
    user = db.get(User, ctx.user_id)
    if not user:
        raise _unauthorized("user no longer exists")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
