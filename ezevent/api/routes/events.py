from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from ezevent.api.errors import http_error_from_service
from ezevent.api.schemas.events import (
    AdminEventListOut,
    AdminEventOut,
    ApproveEventIn,
    AutoApproveOut,
    AvailableEventListOut,
    AvailableEventOut,
    CreatorOut,
    DeleteEventIn,
    EventCreate,
    EventCreatedOut,
    EventDetailOut,
    EventDetailResponse,
    EventListOut,
    EventOut,
    EventQrOut,
    EventReviewedOut,
    EventSummaryOut,
    OwnedEventListOut,
)
from ezevent.auth.deps import Auth, DBSession, OptionalAuth, require_role
from ezevent.models.user import UserRole
from ezevent.qr import render_qr_data_url
from ezevent.services import events_service
from ezevent.services.exceptions import ServiceError

router = APIRouter(prefix="/events", tags=["events"])
admin_router = APIRouter(
    prefix="/admin/events",
    tags=["admin"],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)


@router.post("", response_model=EventCreatedOut)
def create_event(payload: EventCreate, db: DBSession, ctx: Auth):
    try:
        event = events_service.create_event(db, ctx, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventCreatedOut(event=EventOut.model_validate(event))


@router.get("", response_model=EventListOut)
def list_public_events(db: DBSession):
    events = events_service.list_public_events(db)
    return EventListOut(
        events=[EventSummaryOut.model_validate(e) for e in events],
        total=len(events),
    )


@router.get("/available", response_model=AvailableEventListOut)
def list_available_events(db: DBSession, ctx: OptionalAuth):
    items = events_service.list_available_events(db, ctx)
    return AvailableEventListOut(
        events=[
            AvailableEventOut(
                id=item.event.id,
                name=item.event.name,
                description=item.event.description,
                start_time=item.event.start_time,
                end_time=item.event.end_time,
                location=item.event.location,
                creator=CreatorOut.model_validate(item.event.creator),
                participant_count=item.participant_count,
                is_registered=item.is_registered,
                registration_id=item.registration_id,
            )
            for item in items
        ],
        total=len(items),
    )


@router.get("/mine", response_model=OwnedEventListOut)
def list_my_events(db: DBSession, ctx: Auth):
    events = events_service.list_my_events(db, ctx)
    return OwnedEventListOut(
        events=[EventOut.model_validate(e) for e in events],
        total=len(events),
    )


@router.get("/detail", response_model=EventDetailResponse)
def event_detail(db: DBSession, ctx: OptionalAuth, event_id: uuid.UUID = Query(alias="id")):
    try:
        event, manages = events_service.get_event_detail(db, ctx, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err

    detail = EventDetailOut.model_validate(event)
    if not manages:
        detail = detail.model_copy(update={"qr_code": None})
    return EventDetailResponse(event=detail)


@router.post(
    "/approve",
    response_model=EventReviewedOut,
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)
def approve_event(payload: ApproveEventIn, db: DBSession, ctx: Auth):
    try:
        event = events_service.review_event(db, ctx, payload.event_id, payload.status)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventReviewedOut(
        message=f"event {event.status.value.lower()}",
        event=EventOut.model_validate(event),
    )


@router.post(
    "/auto-approve",
    response_model=AutoApproveOut,
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)
def auto_approve_events(db: DBSession, ctx: Auth):
    try:
        events = events_service.auto_approve_pending_events(db, ctx)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return AutoApproveOut(
        message=f"approved {len(events)} event(s)",
        approved_events=[EventOut.model_validate(e) for e in events],
    )


@router.post("/delete")
def delete_event(payload: DeleteEventIn, db: DBSession, ctx: Auth):
    try:
        events_service.delete_event(db, ctx, payload.event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return {"message": "event deleted"}


@router.get("/qr-image", response_model=EventQrOut)
def event_qr_image(db: DBSession, ctx: Auth, event_id: uuid.UUID = Query(alias="eventId")):
    try:
        event = events_service.require_event_manager(db, ctx, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventQrOut(
        event_id=event.id,
        qr_code=event.qr_code,
        share_url=event.share_url,
        qr_code_image=render_qr_data_url(event.qr_code),
    )


@admin_router.get("", response_model=AdminEventListOut)
def admin_list_events(db: DBSession, ctx: Auth):
    try:
        rows = events_service.list_all_events(db, ctx)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return AdminEventListOut(
        events=[
            AdminEventOut(**EventOut.model_validate(event).model_dump(), registration_count=count)
            for event, count in rows
        ],
        total=len(rows),
    )
