from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from ezevent.api.errors import http_error_from_service
from ezevent.api.schemas.registrations import (
    EventRoleGrantedOut,
    EventRoleOut,
    EventRolesOut,
    GrantEventRoleIn,
)
from ezevent.auth.deps import Auth, DBSession
from ezevent.services import event_roles_service
from ezevent.services.exceptions import ServiceError

router = APIRouter(prefix="/events/roles", tags=["event-roles"])


@router.get("", response_model=EventRolesOut)
def list_event_roles(db: DBSession, ctx: Auth, event_id: uuid.UUID = Query(alias="eventId")):
    try:
        roles = event_roles_service.list_event_roles(db, ctx, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventRolesOut(roles=[EventRoleOut.model_validate(r) for r in roles])


@router.post("", response_model=EventRoleGrantedOut)
def grant_event_role(payload: GrantEventRoleIn, db: DBSession, ctx: Auth):
    try:
        event_role = event_roles_service.grant_event_role(
            db, ctx, payload.event_id, payload.user_id, payload.role
        )
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventRoleGrantedOut(event_role=EventRoleOut.model_validate(event_role))
