from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from ezevent.api.routes.router import router as api_router
from ezevent.core.config import settings
from ezevent.core.logging import configure_logging
from ezevent.db import init_db
from ezevent.middleware.rate_limit import RateLimitMiddleware
from ezevent.middleware.request_id import RequestIdMiddleware
from ezevent.middleware.security_headers import SecurityHeadersMiddleware

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.db_auto_create:
        init_db()
    yield


app = FastAPI(title="EZEvent API", lifespan=lifespan)

# Starlette runs the LAST added middleware FIRST (outermost):
# request id + security headers wrap everything, rate limiting sits closest to the app.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
def root():
    return {"name": "EZEvent API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(api_router, prefix="/api")
