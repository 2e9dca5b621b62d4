from __future__ import annotations

import uuid
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ezevent.auth.capabilities import AuthContext
from ezevent.models import EventRole, User
from ezevent.models.event_role import EventRoleType
from ezevent.services.error_codes import ErrorCode
from ezevent.services.events_service import require_event_manager
from ezevent.services.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger(__name__)


def grant_event_role(
    db: Session,
    ctx: AuthContext,
    event_id: Any,
    user_id: uuid.UUID,
    role: EventRoleType,
) -> EventRole:
    event = require_event_manager(db, ctx, event_id)
    if not db.get(User, user_id):
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, "user not found")

    event_role = EventRole(event_id=event.id, user_id=user_id, role=role)
    db.add(event_role)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            ErrorCode.EVENT_ROLE_EXISTS, "user already has a role on this event"
        ) from exc

    db.refresh(event_role)
    logger.info(
        "event_role_granted",
        event_id=str(event.id),
        user_id=str(user_id),
        role=role.value,
        granted_by=str(ctx.user_id),
    )
    return event_role


def list_event_roles(db: Session, ctx: AuthContext, event_id: Any) -> list[EventRole]:
    event = require_event_manager(db, ctx, event_id)
    return list(
        db.scalars(
            select(EventRole).where(EventRole.event_id == event.id).order_by(EventRole.created_at)
        ).all()
    )
