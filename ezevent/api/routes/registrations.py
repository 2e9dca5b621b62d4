from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from ezevent.api.errors import http_error_from_service
from ezevent.api.schemas.events import EventLookupOut, EventSummaryOut
from ezevent.api.schemas.registrations import (
    CheckInIn,
    CheckInOut,
    ParticipantOut,
    ParticipantsOut,
    RegisterIn,
    RegistrationIssuedOut,
    RegistrationOut,
    RegistrationWithEventOut,
    ScanRegisterIn,
    UserRegistrationsOut,
)
from ezevent.auth.deps import Auth, DBSession, require_role
from ezevent.models import Registration
from ezevent.models.user import UserRole
from ezevent.qr import render_qr_data_url
from ezevent.services import checkin_service, events_service, registration_service
from ezevent.services.exceptions import ServiceError

router = APIRouter(prefix="/events", tags=["registrations"])
user_router = APIRouter(prefix="/user", tags=["registrations"])


def _issued(registration: Registration, message: str) -> RegistrationIssuedOut:
    return RegistrationIssuedOut(
        message=message,
        registration=RegistrationOut.model_validate(registration),
        qr_code_image=render_qr_data_url(registration.qr_code),
        qr_code_data=registration.qr_code,
    )


@router.post("/register", response_model=RegistrationIssuedOut)
def register_for_event(payload: RegisterIn, db: DBSession, ctx: Auth):
    try:
        registration = registration_service.register_for_event(
            db, ctx, payload.event_id, payload.user_id
        )
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return _issued(registration, "registered")


@router.get("/qr", response_model=EventLookupOut)
def lookup_event_by_qr(db: DBSession, qr: str = Query(min_length=1, max_length=64)):
    try:
        event = events_service.find_event_by_qr(db, qr)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventLookupOut(event=EventSummaryOut.model_validate(event))


@router.post("/qr", response_model=RegistrationIssuedOut)
def register_by_event_qr(payload: ScanRegisterIn, db: DBSession, ctx: Auth):
    try:
        registration = registration_service.register_by_event_qr(db, ctx, payload.qr_code)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return _issued(registration, "registered via event QR code")


@router.post(
    "/checkin",
    response_model=CheckInOut,
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)
def check_in(payload: CheckInIn, db: DBSession, ctx: Auth):
    try:
        registration = checkin_service.check_in(db, ctx, payload.qr_code, payload.event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return CheckInOut(registration=RegistrationOut.model_validate(registration))


@router.get("/participants", response_model=ParticipantsOut)
def event_participants(db: DBSession, ctx: Auth, event_id: uuid.UUID = Query(alias="eventId")):
    try:
        result = registration_service.list_event_participants(db, ctx, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return ParticipantsOut(
        registrations=[ParticipantOut.model_validate(r) for r in result.registrations],
        participants=[ParticipantOut.model_validate(r) for r in result.participants],
        total=result.total,
        checked_in=result.checked_in,
        pending_check_in=result.pending_check_in,
    )


@user_router.get("/registrations", response_model=UserRegistrationsOut)
def user_registrations(
    db: DBSession,
    ctx: Auth,
    user_id: uuid.UUID | None = Query(default=None, alias="userId"),
):
    try:
        registrations = registration_service.list_user_registrations(db, ctx, user_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return UserRegistrationsOut(
        registrations=[RegistrationWithEventOut.model_validate(r) for r in registrations]
    )
