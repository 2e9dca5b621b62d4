from ezevent.services.error_codes import ErrorCode
from ezevent.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationError,
)

__all__ = [
    "ErrorCode",
    "ServiceError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "ValidationError",
]
