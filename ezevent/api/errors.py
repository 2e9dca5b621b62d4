from fastapi import HTTPException

from ezevent.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[ServiceError], int], ...] = (
    (NotFoundError, 404),
    (PermissionDeniedError, 403),
    (ConflictError, 409),
    (ValidationError, 422),
)


def status_for_service_error(err: ServiceError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(err, error_type):
            return status
    return 500


def http_error_from_service(err: ServiceError) -> HTTPException:
    return HTTPException(status_code=status_for_service_error(err), detail=err.to_detail())
