from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ezevent.auth.capabilities import Action, AuthContext, require_capability
from ezevent.models import Event, Registration
from ezevent.models.event import EventStatus
from ezevent.services.events_service import require_event_manager

UPCOMING_WINDOW = timedelta(days=7)
RECENT_EVENTS_LIMIT = 5


def attendance_rate(total_registrations: int, total_checkins: int) -> float:
    """Percentage of registrations that checked in, rounded half-up to one decimal."""
    if total_registrations <= 0:
        return 0.0
    rate = total_checkins / total_registrations * 100
    return math.floor(rate * 10 + 0.5) / 10


@dataclass(frozen=True)
class EventReport:
    event_id: uuid.UUID
    total_registrations: int
    total_checkins: int

    @property
    def attendance_rate(self) -> float:
        return attendance_rate(self.total_registrations, self.total_checkins)


@dataclass(frozen=True)
class EventReportRow(EventReport):
    name: str
    status: EventStatus
    start_time: datetime
    end_time: datetime


def _checkin_sum():
    return func.coalesce(func.sum(case((Registration.checked_in.is_(True), 1), else_=0)), 0)


def event_report(db: Session, ctx: AuthContext, event_id: Any) -> EventReport:
    event = require_event_manager(db, ctx, event_id)

    total_registrations, total_checkins = db.execute(
        select(func.count(Registration.id), _checkin_sum()).where(
            Registration.event_id == event.id
        )
    ).one()
    return EventReport(
        event_id=event.id,
        total_registrations=int(total_registrations or 0),
        total_checkins=int(total_checkins or 0),
    )


def _report_rows(db: Session, created_by: uuid.UUID | None) -> list[EventReportRow]:
    stmt = (
        select(
            Event.id,
            Event.name,
            Event.status,
            Event.start_time,
            Event.end_time,
            func.count(Registration.id),
            _checkin_sum(),
        )
        .outerjoin(Registration, Registration.event_id == Event.id)
        .group_by(Event.id, Event.name, Event.status, Event.start_time, Event.end_time)
        .order_by(Event.start_time.desc())
    )
    if created_by is not None:
        stmt = stmt.where(Event.created_by == created_by)

    return [
        EventReportRow(
            event_id=event_id,
            name=name,
            status=status,
            start_time=start_time,
            end_time=end_time,
            total_registrations=int(registrations or 0),
            total_checkins=int(checkins or 0),
        )
        for event_id, name, status, start_time, end_time, registrations, checkins in db.execute(
            stmt
        ).all()
    ]


@dataclass(frozen=True)
class ReportSummary:
    events: list[EventReportRow]

    @property
    def total_events(self) -> int:
        return len(self.events)

    @property
    def total_registrations(self) -> int:
        return sum(row.total_registrations for row in self.events)

    @property
    def total_checkins(self) -> int:
        return sum(row.total_checkins for row in self.events)

    @property
    def overall_attendance_rate(self) -> float:
        return attendance_rate(self.total_registrations, self.total_checkins)

    @property
    def pending_events(self) -> int:
        return sum(1 for row in self.events if row.status == EventStatus.PENDING)

    @property
    def approved_events(self) -> int:
        return sum(1 for row in self.events if row.status == EventStatus.APPROVED)


def report_summary(db: Session, ctx: AuthContext) -> ReportSummary:
    """Aggregate over every event the caller can see: admins all, organizers their own."""
    require_capability(ctx, Action.VIEW_REPORTS)
    created_by = None if ctx.is_admin else ctx.user_id
    return ReportSummary(events=_report_rows(db, created_by))


@dataclass(frozen=True)
class EventPopularity:
    id: uuid.UUID
    name: str
    start_time: datetime
    participant_count: int


@dataclass(frozen=True)
class OrganizerCounts:
    total_events: int
    active_events: int
    upcoming_events: int
    completed_events: int
    total_participants: int
    checked_in_participants: int


@dataclass(frozen=True)
class OrganizerStats:
    stats: OrganizerCounts
    popular_event: EventPopularity | None
    recent_events: list[EventPopularity]


def _popularity(row: EventReportRow) -> EventPopularity:
    return EventPopularity(
        id=row.event_id,
        name=row.name,
        start_time=row.start_time,
        participant_count=row.total_registrations,
    )


def organizer_stats(db: Session, ctx: AuthContext) -> OrganizerStats:
    require_capability(ctx, Action.VIEW_REPORTS)
    rows = _report_rows(db, ctx.user_id)

    now = datetime.now(timezone.utc)
    active = upcoming = 0
    for row in rows:
        if row.end_time >= now:
            active += 1
        if now <= row.start_time <= now + UPCOMING_WINDOW:
            upcoming += 1

    popular = max(rows, key=lambda r: r.total_registrations, default=None)
    return OrganizerStats(
        stats=OrganizerCounts(
            total_events=len(rows),
            active_events=active,
            upcoming_events=upcoming,
            completed_events=len(rows) - active,
            total_participants=sum(r.total_registrations for r in rows),
            checked_in_participants=sum(r.total_checkins for r in rows),
        ),
        popular_event=_popularity(popular) if popular else None,
        # rows are already newest start first
        recent_events=[_popularity(r) for r in rows[:RECENT_EVENTS_LIMIT]],
    )
