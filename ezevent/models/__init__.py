from ezevent.models.base import Base
from ezevent.models.event import Event
from ezevent.models.event_role import EventRole
from ezevent.models.registration import Registration
from ezevent.models.user import User

__all__ = ["Base", "User", "Event", "Registration", "EventRole"]
