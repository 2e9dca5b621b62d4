from __future__ import annotations

from enum import Enum


class ServiceError(Exception):
    """Business rule failure; ``code`` is a stable machine-readable ErrorCode value."""

    def __init__(self, code: str | Enum, message: str | None = None) -> None:
        self.code = code.value if isinstance(code, Enum) else code
        self.message = message or self.code
        super().__init__(self.message)

    def to_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class NotFoundError(ServiceError):
    pass


class PermissionDeniedError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class ValidationError(ServiceError):
    pass
