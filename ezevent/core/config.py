import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


def _csv(val: str | None, default: list[str]) -> list[str]:
    if not val:
        return default
    return [v.strip() for v in val.split(",") if v.strip()]


@dataclass(frozen=True)
class Settings:
    env: str = os.getenv("ENV", "local")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # DB
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./ezevent.db")
    db_auto_create: bool = _bool(os.getenv("DB_AUTO_CREATE"), default=True)

    # Access tokens (stateless, no revocation)
    jwt_secret: str = os.getenv("JWT_SECRET", "change_me_in_production_please_32+")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_issuer: str = os.getenv("JWT_ISSUER", "ezevent")
    jwt_audience: str = os.getenv("JWT_AUDIENCE", "ezevent-api")
    access_token_ttl_seconds: int = int(os.getenv("ACCESS_TOKEN_TTL_SECONDS", str(7 * 86400)))

    # Events
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/")
    auto_approve_privileged_events: bool = _bool(
        os.getenv("AUTO_APPROVE_PRIVILEGED_EVENTS"),
        default=True,
    )

    # QR rendering
    qr_box_size: int = int(os.getenv("QR_BOX_SIZE", "10"))
    qr_border: int = int(os.getenv("QR_BORDER", "2"))

    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    cors_allow_origins: list[str] = field(
        default_factory=lambda: _csv(
            os.getenv("CORS_ALLOW_ORIGINS"),
            default=["http://localhost:3000", "http://127.0.0.1:3000"],
        )
    )

    security_headers_enabled: bool = _bool(
        os.getenv("SECURITY_HEADERS_ENABLED"),
        default=True,
    )

    rate_limit_enabled: bool = _bool(os.getenv("RATE_LIMIT_ENABLED"), default=True)
    rate_limit_default: str = os.getenv("RATE_LIMIT_DEFAULT", "60/minute")
    # login/register get their own, tighter bucket
    rate_limit_auth: str = os.getenv("RATE_LIMIT_AUTH", "10/minute")
    rate_limit_exempt_paths: list[str] = field(
        default_factory=lambda: _csv(
            os.getenv("RATE_LIMIT_EXEMPT_PATHS"),
            default=["/health", "/metrics"],
        )
    )


settings = Settings()
