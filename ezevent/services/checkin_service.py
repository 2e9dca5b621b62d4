from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ezevent.auth.capabilities import Action, AuthContext, require_capability
from ezevent.models import Registration
from ezevent.services.error_codes import ErrorCode
from ezevent.services.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger(__name__)


def check_in(
    db: Session,
    ctx: AuthContext,
    qr_code: str,
    event_id: uuid.UUID | None = None,
) -> Registration:
    """Mark the registration behind ``qr_code`` as attended, exactly once.

    A repeated scan is an error, not a no-op. The flag is flipped with a single
    conditional UPDATE, so of two concurrent scans only one can match the
    ``checked_in = false`` row; the other sees zero affected rows.
    """
    require_capability(ctx, Action.CHECK_IN)

    registration = db.scalar(select(Registration).where(Registration.qr_code == qr_code))
    if not registration:
        raise NotFoundError(ErrorCode.REGISTRATION_NOT_FOUND, "registration not found")

    if event_id is not None and registration.event_id != event_id:
        logger.info(
            "checkin_rejected",
            reason=ErrorCode.QR_EVENT_MISMATCH.value,
            registration_id=str(registration.id),
            event_id=str(event_id),
        )
        raise ConflictError(ErrorCode.QR_EVENT_MISMATCH, "QR does not belong to this event")

    result = db.execute(
        update(Registration)
        .where(Registration.id == registration.id, Registration.checked_in.is_(False))
        .values(checked_in=True, checked_in_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        logger.info(
            "checkin_rejected",
            reason=ErrorCode.ALREADY_CHECKED_IN.value,
            registration_id=str(registration.id),
        )
        raise ConflictError(ErrorCode.ALREADY_CHECKED_IN, "already checked in")

    db.commit()
    db.refresh(registration)
    logger.info(
        "checkin_succeeded",
        registration_id=str(registration.id),
        event_id=str(registration.event_id),
        checked_in_by=str(ctx.user_id),
    )
    return registration
