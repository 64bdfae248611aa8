from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.exceptions import DuplicateActiveToken, SessionNotFound
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import SessionToken
from .repository import TokenRepository

_COLUMNS = "token_id, session_id, token, issued_at, expires_at, superseded_at"


def _to_token(r: dict) -> SessionToken:
    return SessionToken(
        token_id=int(r["token_id"]),
        session_id=int(r["session_id"]),
        token=r["token"],
        issued_at=r["issued_at"],
        expires_at=r["expires_at"],
        superseded_at=r.get("superseded_at"),
    )


class MySQLTokenRepository(TokenRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, token: str) -> Optional[SessionToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM session_tokens WHERE token=%s", (token,))
            r = fetchone(cur)
            return _to_token(r) if r else None

    def get_active_for_session(self, session_id: int, *, now: datetime) -> Optional[SessionToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM session_tokens
                WHERE session_id=%s AND superseded_at IS NULL AND expires_at > %s
                ORDER BY issued_at DESC
                LIMIT 1
                """,
                (int(session_id), now),
            )
            r = fetchone(cur)
            return _to_token(r) if r else None

    def get_latest_for_session(self, session_id: int) -> Optional[SessionToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM session_tokens
                WHERE session_id=%s
                ORDER BY issued_at DESC, token_id DESC
                LIMIT 1
                """,
                (int(session_id),),
            )
            r = fetchone(cur)
            return _to_token(r) if r else None

    def create(
        self,
        *,
        session_id: int,
        token: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> SessionToken:
        with db_cursor(self._conn_factory) as (_, cur):
            # Locking the session row serialises concurrent creators across
            # processes; the active check below then sees committed rows.
            cur.execute(
                "SELECT session_id FROM class_sessions WHERE session_id=%s FOR UPDATE",
                (int(session_id),),
            )
            if not fetchone(cur):
                raise SessionNotFound(f"Session {session_id} not found")

            cur.execute(
                """
                SELECT token_id
                FROM session_tokens
                WHERE session_id=%s AND superseded_at IS NULL AND expires_at > %s
                LIMIT 1
                FOR UPDATE
                """,
                (int(session_id), issued_at),
            )
            existing = fetchone(cur)
            if existing:
                raise DuplicateActiveToken(
                    f"Session {session_id} already has active token {existing['token_id']}"
                )

            cur.execute(
                """
                INSERT INTO session_tokens(session_id, token, issued_at, expires_at)
                VALUES(%s,%s,%s,%s)
                """,
                (int(session_id), token, issued_at, expires_at),
            )
            return SessionToken(
                token_id=int(cur.lastrowid),
                session_id=int(session_id),
                token=token,
                issued_at=issued_at,
                expires_at=expires_at,
            )

    def supersede(self, token_id: int, *, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE session_tokens
                SET superseded_at=%s
                WHERE token_id=%s AND superseded_at IS NULL
                """,
                (at, int(token_id)),
            )
            return cur.rowcount > 0
