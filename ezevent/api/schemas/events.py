from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ezevent.models.event import EventStatus

REVIEW_STATUSES = frozenset({EventStatus.APPROVED, EventStatus.REJECTED})


def _ensure_tzaware(value: datetime | None) -> datetime | None:
    if value is None:
        return value
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError("datetime must be timezone-aware")
    # stored as UTC so SQLite (which drops offsets) compares correctly
    return value.astimezone(timezone.utc)


class SchemaBase(BaseModel):
    """camelCase on the wire, snake_case in Python; both are accepted on input."""

    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class EventCreate(SchemaBase):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    start_time: datetime
    end_time: datetime
    location: str | None = Field(default=None, max_length=300)
    image_url: str | None = Field(default=None, max_length=1024)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def _validate_tzaware(cls, value: datetime) -> datetime:
        return _ensure_tzaware(value)

    @model_validator(mode="after")
    def _validate_time_bounds(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class ApproveEventIn(SchemaBase):
    event_id: UUID
    status: EventStatus

    @field_validator("status")
    @classmethod
    def _review_status_only(cls, value: EventStatus) -> EventStatus:
        if value not in REVIEW_STATUSES:
            raise ValueError("status must be APPROVED or REJECTED")
        return value


class DeleteEventIn(SchemaBase):
    event_id: UUID


class EventOut(SchemaBase):
    id: UUID
    name: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    location: str | None = None
    image_url: str | None = None
    status: EventStatus
    qr_code: str
    share_url: str | None = None
    created_by: UUID
    created_at: datetime
    updated_at: datetime


class EventCreatedOut(SchemaBase):
    message: str = "event created"
    event: EventOut


class CreatorOut(SchemaBase):
    id: UUID
    name: str | None = None
    email: str
    organization: str | None = None


class EventSummaryOut(SchemaBase):
    id: UUID
    name: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    location: str | None = None
    image_url: str | None = None
    status: EventStatus
    share_url: str | None = None


class EventDetailOut(EventSummaryOut):
    # only filled in for callers who manage the event
    qr_code: str | None = None
    created_by: UUID
    creator: CreatorOut | None = None


class EventDetailResponse(SchemaBase):
    event: EventDetailOut


class EventListOut(SchemaBase):
    events: list[EventSummaryOut]
    total: int = Field(ge=0)


class OwnedEventListOut(SchemaBase):
    events: list[EventOut]
    total: int = Field(ge=0)


class AdminEventOut(EventOut):
    registration_count: int = Field(ge=0)


class AdminEventListOut(SchemaBase):
    events: list[AdminEventOut]
    total: int = Field(ge=0)


class AvailableEventOut(SchemaBase):
    id: UUID
    name: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    location: str | None = None
    creator: CreatorOut | None = None
    participant_count: int = Field(ge=0)
    is_registered: bool = False
    registration_id: UUID | None = None


class AvailableEventListOut(SchemaBase):
    events: list[AvailableEventOut]
    total: int = Field(ge=0)


class EventReviewedOut(SchemaBase):
    message: str
    event: EventOut


class AutoApproveOut(SchemaBase):
    message: str
    approved_events: list[EventOut]


class EventQrOut(SchemaBase):
    event_id: UUID
    qr_code: str
    share_url: str | None = None
    qr_code_image: str


class EventLookupOut(SchemaBase):
    event: EventSummaryOut
