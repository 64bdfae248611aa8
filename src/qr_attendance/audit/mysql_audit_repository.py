from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO checkin_audit(session_id, student_id, token_fingerprint, outcome, detail, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.session_id,
                    int(entry.student_id),
                    entry.token_fingerprint,
                    entry.outcome.value,
                    entry.detail,
                    entry.created_at,
                ),
            )
