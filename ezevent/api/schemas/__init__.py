from ezevent.api.schemas.events import (
    ApproveEventIn,
    EventCreate,
    EventDetailOut,
    EventListOut,
    EventOut,
    EventSummaryOut,
)
from ezevent.api.schemas.registrations import (
    CheckInIn,
    RegisterIn,
    RegistrationIssuedOut,
    RegistrationOut,
    ScanRegisterIn,
)
from ezevent.api.schemas.reports import EventReportOut, OrganizerStatsOut, ReportSummaryOut

__all__ = [
    "EventCreate",
    "ApproveEventIn",
    "EventOut",
    "EventSummaryOut",
    "EventDetailOut",
    "EventListOut",
    "RegisterIn",
    "ScanRegisterIn",
    "CheckInIn",
    "RegistrationOut",
    "RegistrationIssuedOut",
    "EventReportOut",
    "ReportSummaryOut",
    "OrganizerStatsOut",
]
