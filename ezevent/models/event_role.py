from __future__ import annotations

import uuid
from enum import Enum
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ezevent.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from ezevent.models.event import Event
    from ezevent.models.user import User


class EventRoleType(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


# Roles that carry management rights over the event
MANAGING_EVENT_ROLES = frozenset({EventRoleType.OWNER, EventRoleType.ADMIN})


class EventRole(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "event_roles"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_roles_event_user"),)

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[EventRoleType] = mapped_column(
        sa.Enum(EventRoleType, name="event_role_type"),
        nullable=False,
        default=EventRoleType.MEMBER,
    )

    event: Mapped[Event] = relationship(back_populates="roles")
    user: Mapped[User] = relationship(lazy="joined")
