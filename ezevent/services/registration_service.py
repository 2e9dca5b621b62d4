from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ezevent.auth.capabilities import Action, AuthContext, require_capability
from ezevent.models import Event, Registration, User
from ezevent.qr import generate_token
from ezevent.services.error_codes import ErrorCode
from ezevent.services.events_service import find_event_by_qr, get_event_or_404, require_event_manager
from ezevent.services.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger(__name__)


def _existing_registration(db: Session, user_id: Any, event_id: Any) -> Registration | None:
    return db.scalar(
        select(Registration).where(
            Registration.user_id == user_id,
            Registration.event_id == event_id,
        )
    )


def _create_registration(db: Session, user_id: uuid.UUID, event: Event) -> Registration:
    # Fast path for the common duplicate; the unique constraint decides under races.
    if _existing_registration(db, user_id, event.id):
        raise ConflictError(ErrorCode.ALREADY_REGISTERED, "already registered for this event")

    registration = Registration(
        user_id=user_id,
        event_id=event.id,
        qr_code=generate_token(),
        checked_in=False,
    )
    db.add(registration)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            ErrorCode.ALREADY_REGISTERED, "already registered for this event"
        ) from exc

    db.refresh(registration)
    logger.info(
        "registration_created",
        registration_id=str(registration.id),
        event_id=str(event.id),
        user_id=str(user_id),
    )
    return registration


def register_for_event(
    db: Session,
    ctx: AuthContext,
    event_id: Any,
    user_id: uuid.UUID | None = None,
) -> Registration:
    target_user_id = user_id or ctx.user_id
    require_capability(ctx, Action.REGISTER_SELF)
    if target_user_id != ctx.user_id:
        require_capability(ctx, Action.REGISTER_OTHERS)

    event = get_event_or_404(db, event_id)
    if not db.get(User, target_user_id):
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, "user not found")

    return _create_registration(db, target_user_id, event)


def register_by_event_qr(db: Session, ctx: AuthContext, qr_code: str) -> Registration:
    """Self-registration from a scanned event QR code (attendees only)."""
    require_capability(ctx, Action.REGISTER_BY_SCAN)

    event = find_event_by_qr(db, qr_code)
    if not db.get(User, ctx.user_id):
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, "user not found")

    return _create_registration(db, ctx.user_id, event)


def list_user_registrations(
    db: Session,
    ctx: AuthContext,
    user_id: uuid.UUID | None = None,
) -> list[Registration]:
    target_user_id = user_id or ctx.user_id
    if target_user_id != ctx.user_id:
        require_capability(ctx, Action.VIEW_ANY_REGISTRATIONS)

    return list(
        db.scalars(
            select(Registration)
            .where(Registration.user_id == target_user_id)
            .options(selectinload(Registration.event))
            .order_by(Registration.created_at.desc())
        ).all()
    )


@dataclass(frozen=True)
class EventParticipants:
    registrations: list[Registration]

    @property
    def participants(self) -> list[Registration]:
        return [r for r in self.registrations if r.checked_in]

    @property
    def total(self) -> int:
        return len(self.registrations)

    @property
    def checked_in(self) -> int:
        return len(self.participants)

    @property
    def pending_check_in(self) -> int:
        return self.total - self.checked_in


def list_event_participants(db: Session, ctx: AuthContext, event_id: Any) -> EventParticipants:
    event = require_event_manager(db, ctx, event_id)
    registrations = db.scalars(
        select(Registration)
        .where(Registration.event_id == event.id)
        .options(selectinload(Registration.user))
        .order_by(Registration.created_at.desc())
    ).all()
    return EventParticipants(registrations=list(registrations))
