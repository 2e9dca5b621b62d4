from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import EmailStr, Field, field_validator
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ezevent.api.schemas.events import SchemaBase
from ezevent.auth.deps import CurrentUser, DBSession
from ezevent.auth.jwt import create_access_token
from ezevent.auth.password import MIN_PASSWORD_LENGTH, hash_password, needs_rehash, verify_password
from ezevent.core.config import settings
from ezevent.models import User
from ezevent.models.user import UserRole

router = APIRouter(prefix="/auth", tags=["auth"])

logger = structlog.get_logger(__name__)

SELF_ASSIGNABLE_ROLES = frozenset({UserRole.ORGANIZER, UserRole.STUDENT, UserRole.USER})


class UserOut(SchemaBase):
    id: uuid.UUID
    email: str
    name: str | None = None
    role: UserRole
    phone: str | None = None
    organization: str | None = None
    job_title: str | None = None
    created_at: datetime
    last_login_at: datetime | None = None


class RegisterIn(SchemaBase):
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, pattern=r"^[0-9+\-()\s]{6,20}$")
    organization: str | None = Field(default=None, max_length=200)
    job_title: str | None = Field(default=None, max_length=200)
    role: UserRole | None = None

    @field_validator("role")
    @classmethod
    def _no_self_assigned_admin(cls, value: UserRole | None) -> UserRole | None:
        if value is not None and value not in SELF_ASSIGNABLE_ROLES:
            raise ValueError(f"role {value.value} cannot be self-assigned")
        return value


class RegisterOut(SchemaBase):
    message: str = "registered"
    user: UserOut


@router.post("/register", response_model=RegisterOut)
def register(payload: RegisterIn, db: DBSession):
    email = payload.email.strip().lower()
    existing = db.scalar(select(User).where(User.email == email))
    if existing:
        raise HTTPException(status_code=409, detail="email already registered")

    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        name=payload.name,
        phone=payload.phone,
        organization=payload.organization,
        job_title=payload.job_title,
        role=payload.role or UserRole.STUDENT,
    )
    db.add(user)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="email already registered") from None

    db.refresh(user)
    logger.info("user_registered", user_id=str(user.id), role=user.role.value)
    return RegisterOut(user=UserOut.model_validate(user))


class LoginIn(SchemaBase):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginOut(SchemaBase):
    message: str = "logged in"
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: DBSession):
    email = payload.email.strip().lower()
    user = db.scalar(select(User).where(User.email == email))
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("login_failed", email=email)
        raise HTTPException(status_code=401, detail="invalid credentials")

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
    user.last_login_at = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)

    token = create_access_token(user.id, user.email, user.role.value)
    return LoginOut(
        token=token,
        expires_in=settings.access_token_ttl_seconds,
        user=UserOut.model_validate(user),
    )


@router.get("/me", response_model=UserOut)
def me(user: CurrentUser):
    return UserOut.model_validate(user)
