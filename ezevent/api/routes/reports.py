from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from ezevent.api.errors import http_error_from_service
from ezevent.api.schemas.reports import (
    EventReportOut,
    EventReportRowOut,
    OrganizerStatsOut,
    ReportSummaryOut,
)
from ezevent.auth.deps import Auth, DBSession
from ezevent.services import report_service
from ezevent.services.exceptions import ServiceError

router = APIRouter(tags=["reports"])


@router.get("/events/report", response_model=EventReportOut)
def event_report(db: DBSession, ctx: Auth, event_id: uuid.UUID = Query(alias="eventId")):
    try:
        report = report_service.event_report(db, ctx, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventReportOut.model_validate(report)


@router.get("/reports/summary", response_model=ReportSummaryOut)
def report_summary(db: DBSession, ctx: Auth):
    try:
        summary = report_service.report_summary(db, ctx)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return ReportSummaryOut(
        events=[EventReportRowOut.model_validate(row) for row in summary.events],
        total_events=summary.total_events,
        total_registrations=summary.total_registrations,
        total_checkins=summary.total_checkins,
        overall_attendance_rate=summary.overall_attendance_rate,
        pending_events=summary.pending_events,
        approved_events=summary.approved_events,
    )


@router.get("/organizer/stats", response_model=OrganizerStatsOut)
def organizer_stats(db: DBSession, ctx: Auth):
    try:
        stats = report_service.organizer_stats(db, ctx)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return OrganizerStatsOut.model_validate(stats)
