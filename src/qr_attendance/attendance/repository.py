from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, MarkedBy
from .model import AttendanceRecord, InsertResult


class AttendanceRepository(Protocol):
    def insert_if_absent(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        marked_at: datetime,
        marked_by: MarkedBy,
    ) -> InsertResult:
        """Atomically create the record unless (session_id, student_id) exists.

        Must be a single conditional write at the storage layer. When the
        pair exists, the stored record is returned untouched.
        """

        raise NotImplementedError

    def get_for_session_and_student(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def correct_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        corrected_by: int,
        marked_by: MarkedBy,
        reason: str,
        corrected_at: datetime,
    ) -> bool:
        """Faculty/admin override; the only path allowed to overwrite a record."""

        raise NotImplementedError
