from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from ezevent.api.schemas.events import SchemaBase
from ezevent.models.event import EventStatus


class EventReportOut(SchemaBase):
    event_id: UUID
    total_registrations: int = Field(ge=0)
    total_checkins: int = Field(ge=0)
    attendance_rate: float = Field(ge=0, le=100)


class EventReportRowOut(EventReportOut):
    name: str
    status: EventStatus
    start_time: datetime


class ReportSummaryOut(SchemaBase):
    events: list[EventReportRowOut]
    total_events: int = Field(ge=0)
    total_registrations: int = Field(ge=0)
    total_checkins: int = Field(ge=0)
    overall_attendance_rate: float = Field(ge=0, le=100)
    pending_events: int = Field(ge=0)
    approved_events: int = Field(ge=0)


class OrganizerCountsOut(SchemaBase):
    total_events: int
    active_events: int
    upcoming_events: int
    completed_events: int
    total_participants: int
    checked_in_participants: int


class EventPopularityOut(SchemaBase):
    id: UUID
    name: str
    start_time: datetime
    participant_count: int


class OrganizerStatsOut(SchemaBase):
    stats: OrganizerCountsOut
    popular_event: EventPopularityOut | None = None
    recent_events: list[EventPopularityOut]
