from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.enums import AttendanceStatus, MarkedBy


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: attendance of one student in one class session."""

    attendance_id: int
    session_id: int
    student_id: int
    status: AttendanceStatus
    marked_at: datetime
    marked_by: MarkedBy


@dataclass(frozen=True)
class InsertResult:
    """Outcome of the store's conditional insert."""

    created: bool
    record: AttendanceRecord


@dataclass(frozen=True)
class CheckinResult:
    session_id: int
    status: AttendanceStatus
    created: bool
    marked_at: datetime

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "status": self.status.value,
            "created": self.created,
            "markedAt": self.marked_at.isoformat(),
        }
