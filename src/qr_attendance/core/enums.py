from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Attendance status stored in the database."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"


class MarkedBy(str, Enum):
    """Who wrote the attendance record."""

    SELF = "SELF"
    FACULTY = "FACULTY"
    ADMIN = "ADMIN"


class TokenState(str, Enum):
    ACTIVE = "ACTIVE"
    SUPERSEDED = "SUPERSEDED"
    EXPIRED = "EXPIRED"


class AuditOutcome(str, Enum):
    """Outcome recorded for every check-in attempt or correction."""

    CHECKED_IN = "CHECKED_IN"
    ALREADY_MARKED = "ALREADY_MARKED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    SESSION_CLOSED = "SESSION_CLOSED"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    CORRECTED = "CORRECTED"
