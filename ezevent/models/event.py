from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ezevent.models.base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from ezevent.models.event_role import EventRole
    from ezevent.models.registration import Registration
    from ezevent.models.user import User


class EventStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    # no transition leads here; only reachable by editing data directly
    CANCELLED = "CANCELLED"


class Event(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "events"
    __table_args__ = (sa.Index("ix_events_status_start_time", "status", "start_time"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    location: Mapped[str | None] = mapped_column(String(300), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    status: Mapped[EventStatus] = mapped_column(
        sa.Enum(EventStatus, name="event_status"),
        nullable=False,
        default=EventStatus.PENDING,
        server_default=EventStatus.PENDING.value,
    )

    # Registration-by-scan token; check-in uses Registration.qr_code instead
    qr_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    share_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    creator: Mapped[User] = relationship(lazy="joined")
    registrations: Mapped[list[Registration]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    roles: Mapped[list[EventRole]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
