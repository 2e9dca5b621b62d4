from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from ezevent.api.schemas.events import EventSummaryOut, SchemaBase
from ezevent.models.event_role import EventRoleType


class RegisterIn(SchemaBase):
    event_id: UUID
    # defaults to the caller
    user_id: UUID | None = None


class ScanRegisterIn(SchemaBase):
    qr_code: str = Field(min_length=1, max_length=64)


class CheckInIn(SchemaBase):
    qr_code: str = Field(min_length=1, max_length=64)
    event_id: UUID | None = None


class RegistrationOut(SchemaBase):
    id: UUID
    user_id: UUID
    event_id: UUID
    qr_code: str
    checked_in: bool
    checked_in_at: datetime | None = None
    created_at: datetime


class RegistrationIssuedOut(SchemaBase):
    message: str
    registration: RegistrationOut
    qr_code_image: str
    qr_code_data: str


class CheckInOut(SchemaBase):
    message: str = "checked in"
    registration: RegistrationOut


class RegistrationWithEventOut(RegistrationOut):
    event: EventSummaryOut


class UserRegistrationsOut(SchemaBase):
    registrations: list[RegistrationWithEventOut]


class ParticipantUserOut(SchemaBase):
    id: UUID
    email: str
    name: str | None = None
    phone: str | None = None
    organization: str | None = None
    job_title: str | None = None


class ParticipantOut(RegistrationOut):
    user: ParticipantUserOut


class ParticipantsOut(SchemaBase):
    registrations: list[ParticipantOut]
    participants: list[ParticipantOut]
    total: int = Field(ge=0)
    checked_in: int = Field(ge=0)
    pending_check_in: int = Field(ge=0)


class GrantEventRoleIn(SchemaBase):
    event_id: UUID
    user_id: UUID
    role: EventRoleType


class RoleUserOut(SchemaBase):
    id: UUID
    email: str
    name: str | None = None


class EventRoleOut(SchemaBase):
    id: UUID
    event_id: UUID
    user_id: UUID
    role: EventRoleType
    user: RoleUserOut


class EventRoleGrantedOut(SchemaBase):
    message: str = "role granted"
    event_role: EventRoleOut


class EventRolesOut(SchemaBase):
    roles: list[EventRoleOut]
