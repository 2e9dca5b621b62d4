"""Role and ownership based permissions.

Every role-dependent decision in the services goes through
:func:`permitted_actions`, so the policy for ADMIN, ORGANIZER and attendees can
be read in one table instead of being spread over the handlers.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum

from ezevent.models.user import UserRole
from ezevent.services.error_codes import ErrorCode
from ezevent.services.exceptions import PermissionDeniedError


class Action(str, Enum):
    CREATE_EVENT = "create_event"
    AUTO_APPROVE_OWN_EVENTS = "auto_approve_own_events"
    REVIEW_EVENTS = "review_events"
    VIEW_ALL_EVENTS = "view_all_events"
    MANAGE_EVENT = "manage_event"
    REGISTER_SELF = "register_self"
    REGISTER_BY_SCAN = "register_by_scan"
    REGISTER_OTHERS = "register_others"
    VIEW_ANY_REGISTRATIONS = "view_any_registrations"
    CHECK_IN = "check_in"
    VIEW_REPORTS = "view_reports"


_ATTENDEE_ACTIONS = frozenset({Action.REGISTER_SELF, Action.REGISTER_BY_SCAN})

_ROLE_ACTIONS: dict[UserRole, frozenset[Action]] = {
    UserRole.ADMIN: frozenset(
        {
            Action.CREATE_EVENT,
            Action.AUTO_APPROVE_OWN_EVENTS,
            Action.REVIEW_EVENTS,
            Action.VIEW_ALL_EVENTS,
            Action.MANAGE_EVENT,
            Action.REGISTER_SELF,
            Action.REGISTER_OTHERS,
            Action.VIEW_ANY_REGISTRATIONS,
            Action.CHECK_IN,
            Action.VIEW_REPORTS,
        }
    ),
    UserRole.ORGANIZER: frozenset(
        {
            Action.CREATE_EVENT,
            Action.AUTO_APPROVE_OWN_EVENTS,
            Action.REGISTER_SELF,
            Action.VIEW_REPORTS,
        }
    ),
    UserRole.STUDENT: _ATTENDEE_ACTIONS,
    UserRole.USER: _ATTENDEE_ACTIONS,
}

# Granted on top of the role when the caller owns the event in question
_OWNER_ACTIONS = frozenset({Action.MANAGE_EVENT})


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, taken from a verified access token."""

    user_id: uuid.UUID
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def permitted_actions(role: UserRole, *, is_owner: bool = False) -> frozenset[Action]:
    actions = _ROLE_ACTIONS.get(role, frozenset())
    if is_owner:
        actions = actions | _OWNER_ACTIONS
    return actions


def can(ctx: AuthContext, action: Action, *, is_owner: bool = False) -> bool:
    return action in permitted_actions(ctx.role, is_owner=is_owner)


def require_capability(ctx: AuthContext, action: Action, *, is_owner: bool = False) -> None:
    if not can(ctx, action, is_owner=is_owner):
        code = ErrorCode.NOT_EVENT_OWNER if action == Action.MANAGE_EVENT else ErrorCode.FORBIDDEN
        raise PermissionDeniedError(code, f"role {ctx.role.value} may not {action.value}")
