from fastapi import APIRouter

from ezevent.api.routes.auth import router as auth_router
from ezevent.api.routes.event_roles import router as event_roles_router
from ezevent.api.routes.events import admin_router as admin_events_router
from ezevent.api.routes.events import router as events_router
from ezevent.api.routes.registrations import router as registrations_router
from ezevent.api.routes.registrations import user_router
from ezevent.api.routes.reports import router as reports_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(event_roles_router)
router.include_router(reports_router)
router.include_router(registrations_router)
router.include_router(events_router)
router.include_router(admin_events_router)
router.include_router(user_router)
