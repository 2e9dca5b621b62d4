from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ezevent.api.schemas.events import EventCreate
from ezevent.auth.capabilities import Action, AuthContext, can, require_capability
from ezevent.core.config import settings
from ezevent.models import Event, EventRole, Registration, User
from ezevent.models.event import EventStatus
from ezevent.models.event_role import MANAGING_EVENT_ROLES, EventRoleType
from ezevent.models.user import UserRole
from ezevent.qr import generate_token
from ezevent.services.error_codes import ErrorCode
from ezevent.services.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger(__name__)

# Creator roles whose pending events the batch auto-approval picks up
PRIVILEGED_CREATOR_ROLES = (UserRole.ORGANIZER, UserRole.ADMIN)


def share_url_for(event_id: uuid.UUID) -> str:
    return f"{settings.public_base_url}/student/events/{event_id}"


def get_event_or_404(db: Session, event_id: Any) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND, "event not found")
    return event


def is_event_owner(db: Session, ctx: AuthContext, event: Event) -> bool:
    if event.created_by == ctx.user_id:
        return True
    role_id = db.scalar(
        select(EventRole.id).where(
            EventRole.event_id == event.id,
            EventRole.user_id == ctx.user_id,
            EventRole.role.in_(MANAGING_EVENT_ROLES),
        )
    )
    return role_id is not None


def require_event_manager(db: Session, ctx: AuthContext, event_id: Any) -> Event:
    event = get_event_or_404(db, event_id)
    require_capability(ctx, Action.MANAGE_EVENT, is_owner=is_event_owner(db, ctx, event))
    return event


def create_event(db: Session, ctx: AuthContext, payload: EventCreate) -> Event:
    require_capability(ctx, Action.CREATE_EVENT)

    auto_approve = settings.auto_approve_privileged_events and can(
        ctx, Action.AUTO_APPROVE_OWN_EVENTS
    )
    event_id = uuid.uuid4()
    event = Event(
        id=event_id,
        name=payload.name,
        description=payload.description,
        start_time=payload.start_time,
        end_time=payload.end_time,
        location=payload.location,
        image_url=payload.image_url,
        status=EventStatus.APPROVED if auto_approve else EventStatus.PENDING,
        qr_code=generate_token(),
        share_url=share_url_for(event_id),
        created_by=ctx.user_id,
    )
    db.add(event)

    try:
        db.flush()
        db.add(EventRole(event_id=event.id, user_id=ctx.user_id, role=EventRoleType.OWNER))
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # qr_code collision or a creator that no longer exists
        raise ConflictError(ErrorCode.EVENT_CONFLICT, "could not create event") from exc

    db.refresh(event)
    logger.info(
        "event_created",
        event_id=str(event.id),
        created_by=str(ctx.user_id),
        status=event.status.value,
    )
    return event


def review_event(db: Session, ctx: AuthContext, event_id: Any, status: EventStatus) -> Event:
    """Move a PENDING event to APPROVED or REJECTED; both are terminal."""
    require_capability(ctx, Action.REVIEW_EVENTS)

    result = db.execute(
        update(Event)
        .where(Event.id == event_id, Event.status == EventStatus.PENDING)
        .values(status=status, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        event = get_event_or_404(db, event_id)
        raise ConflictError(
            ErrorCode.EVENT_NOT_PENDING,
            f"event is already {event.status.value}",
        )
    db.commit()

    event = get_event_or_404(db, event_id)
    db.refresh(event)
    logger.info(
        "event_reviewed",
        event_id=str(event.id),
        status=status.value,
        reviewed_by=str(ctx.user_id),
    )
    return event


def _pending_privileged_event_ids(db: Session) -> list[uuid.UUID]:
    return list(
        db.scalars(
            select(Event.id)
            .join(User, User.id == Event.created_by)
            .where(
                Event.status == EventStatus.PENDING,
                User.role.in_(PRIVILEGED_CREATOR_ROLES),
            )
        ).all()
    )


def auto_approve_pending_events(db: Session, ctx: AuthContext) -> list[Event]:
    """Approve every PENDING event created by an ORGANIZER or ADMIN.

    The update only matches rows that are still PENDING, so an event rejected
    after the candidates were read stays REJECTED and is not returned.
    """
    require_capability(ctx, Action.REVIEW_EVENTS)

    candidate_ids = _pending_privileged_event_ids(db)
    if not candidate_ids:
        return []

    db.execute(
        update(Event)
        .where(Event.id.in_(candidate_ids), Event.status == EventStatus.PENDING)
        .values(status=EventStatus.APPROVED, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    db.commit()

    approved = db.scalars(
        select(Event)
        .where(Event.id.in_(candidate_ids), Event.status == EventStatus.APPROVED)
        .order_by(Event.start_time)
    ).all()
    logger.info("events_auto_approved", count=len(approved), reviewed_by=str(ctx.user_id))
    return list(approved)


def delete_event(db: Session, ctx: AuthContext, event_id: Any) -> None:
    event = require_event_manager(db, ctx, event_id)
    db.delete(event)
    db.commit()
    logger.info("event_deleted", event_id=str(event_id), deleted_by=str(ctx.user_id))


def list_public_events(db: Session) -> list[Event]:
    return list(
        db.scalars(
            select(Event)
            .where(Event.status == EventStatus.APPROVED)
            .order_by(Event.start_time.desc())
        ).all()
    )


def list_my_events(db: Session, ctx: AuthContext) -> list[Event]:
    return list(
        db.scalars(
            select(Event)
            .where(Event.created_by == ctx.user_id)
            .order_by(Event.start_time.desc())
        ).all()
    )


def _registration_counts(db: Session, event_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
    if not event_ids:
        return {}
    rows = db.execute(
        select(Registration.event_id, func.count(Registration.id))
        .where(Registration.event_id.in_(event_ids))
        .group_by(Registration.event_id)
    ).all()
    return {event_id: int(count) for event_id, count in rows}


def list_all_events(db: Session, ctx: AuthContext) -> list[tuple[Event, int]]:
    require_capability(ctx, Action.VIEW_ALL_EVENTS)

    events = db.scalars(select(Event).order_by(Event.start_time.desc())).all()
    counts = _registration_counts(db, [e.id for e in events])
    return [(event, counts.get(event.id, 0)) for event in events]


@dataclass(frozen=True)
class AvailableEvent:
    event: Event
    participant_count: int
    registration_id: uuid.UUID | None

    @property
    def is_registered(self) -> bool:
        return self.registration_id is not None


def list_available_events(db: Session, ctx: AuthContext | None) -> list[AvailableEvent]:
    """Approved events that have not ended yet, soonest first."""
    now = datetime.now(timezone.utc)
    events = db.scalars(
        select(Event)
        .where(Event.status == EventStatus.APPROVED, Event.end_time >= now)
        .order_by(Event.start_time.asc())
    ).all()

    event_ids = [e.id for e in events]
    counts = _registration_counts(db, event_ids)

    mine: dict[uuid.UUID, uuid.UUID] = {}
    if ctx is not None and event_ids:
        rows = db.execute(
            select(Registration.event_id, Registration.id).where(
                Registration.user_id == ctx.user_id,
                Registration.event_id.in_(event_ids),
            )
        ).all()
        mine = {event_id: reg_id for event_id, reg_id in rows}

    return [
        AvailableEvent(
            event=event,
            participant_count=counts.get(event.id, 0),
            registration_id=mine.get(event.id),
        )
        for event in events
    ]


def get_event_detail(db: Session, ctx: AuthContext | None, event_id: Any) -> tuple[Event, bool]:
    """Return the event and whether the caller manages it.

    Approved events are public. Anything else is only visible to its owners and
    admins; other callers get a 404 so unpublished events are not disclosed.
    """
    event = get_event_or_404(db, event_id)
    manages = ctx is not None and can(
        ctx, Action.MANAGE_EVENT, is_owner=is_event_owner(db, ctx, event)
    )
    if event.status != EventStatus.APPROVED and not manages:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND, "event not found")
    return event, manages


def find_event_by_qr(db: Session, qr_code: str) -> Event:
    event = db.scalar(select(Event).where(Event.qr_code == qr_code))
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND, "no event for this QR code")
    if event.status != EventStatus.APPROVED:
        raise ConflictError(ErrorCode.EVENT_NOT_APPROVED, "event is not approved")
    return event
