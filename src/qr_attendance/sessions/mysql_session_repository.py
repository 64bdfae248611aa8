from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassSession
from .repository import SessionRepository


def _to_session(r: dict) -> ClassSession:
    return ClassSession(
        session_id=int(r["session_id"]),
        course_code=r["course_code"],
        faculty_id=int(r["faculty_id"]),
        start_time=r["start_time"],
        end_time=r["end_time"],
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[ClassSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, course_code, faculty_id, start_time, end_time
                FROM class_sessions
                WHERE session_id=%s
                """,
                (int(session_id),),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_open(self, now: datetime) -> Sequence[ClassSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, course_code, faculty_id, start_time, end_time
                FROM class_sessions
                WHERE end_time >= %s
                ORDER BY start_time ASC
                """,
                (now,),
            )
            return [_to_session(r) for r in fetchall(cur)]
