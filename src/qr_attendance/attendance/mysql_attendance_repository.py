from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, MarkedBy
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, InsertResult
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, session_id, student_id, status, marked_at, marked_by"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        session_id=int(r["session_id"]),
        student_id=int(r["student_id"]),
        status=AttendanceStatus(r["status"]),
        marked_at=r["marked_at"],
        marked_by=MarkedBy(r["marked_by"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_if_absent(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        marked_at: datetime,
        marked_by: MarkedBy,
    ) -> InsertResult:
        # The UNIQUE (session_id, student_id) key decides the race; only a
        # duplicate-key error is treated as "already marked".
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(session_id, student_id, status, marked_at, marked_by)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(session_id), int(student_id), status.value, marked_at, marked_by.value),
                )
                record = AttendanceRecord(
                    attendance_id=int(cur.lastrowid),
                    session_id=int(session_id),
                    student_id=int(student_id),
                    status=status,
                    marked_at=marked_at,
                    marked_by=marked_by,
                )
                return InsertResult(created=True, record=record)
        except Exception as exc:
            if not is_duplicate_key(exc):
                raise

        existing = self.get_for_session_and_student(session_id, student_id)
        if existing is None:
            raise RuntimeError(
                f"Duplicate key on attendance ({session_id}, {student_id}) but no row found"
            )
        return InsertResult(created=False, record=existing)

    def get_for_session_and_student(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE session_id=%s AND student_id=%s
                """,
                (int(session_id), int(student_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE session_id=%s
                ORDER BY marked_at ASC
                """,
                (int(session_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT status FROM attendance_records WHERE attendance_id=%s FOR UPDATE",
                (int(attendance_id),),
            )
            current = fetchone(cur)
            if not current:
                return False

            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, marked_by=%s
                WHERE attendance_id=%s
                """,
                (status.value, marked_by.value, int(attendance_id)),
            )
            cur.execute(
                """
                INSERT INTO attendance_corrections(attendance_id, old_status, new_status, corrected_by, reason, corrected_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(attendance_id), current["status"], status.value, int(corrected_by), reason, corrected_at),
            )
            return True
