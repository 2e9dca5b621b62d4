from enum import Enum


class ErrorCode(str, Enum):
    FORBIDDEN = "FORBIDDEN"
    NOT_EVENT_OWNER = "NOT_EVENT_OWNER"

    USER_NOT_FOUND = "USER_NOT_FOUND"

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_CONFLICT = "EVENT_CONFLICT"
    EVENT_NOT_APPROVED = "EVENT_NOT_APPROVED"
    EVENT_NOT_PENDING = "EVENT_NOT_PENDING"

    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    QR_EVENT_MISMATCH = "QR_EVENT_MISMATCH"
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"

    EVENT_ROLE_EXISTS = "EVENT_ROLE_EXISTS"
