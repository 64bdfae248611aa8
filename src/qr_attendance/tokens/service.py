from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..core.constants import ROTATION_DEBOUNCE_SECONDS
from ..core.exceptions import DuplicateActiveToken, SessionClosed, SessionNotFound
from ..sessions.model import ClassSession
from ..sessions.repository import SessionRepository
from .generator import generate_token
from .model import SessionToken
from .policy import TokenPolicy
from .repository import TokenRepository

logger = logging.getLogger(__name__)


class TokenService:
    """Issues and rotates the QR token of each class session.

    Holds no state of its own: every decision is taken against the token
    store, so any number of workers can share the same database.
    """

    def __init__(
        self,
        tokens: TokenRepository,
        sessions: SessionRepository,
        *,
        policy: TokenPolicy,
        clock: Callable[[], datetime] = now_utc,
        debounce_seconds: int = ROTATION_DEBOUNCE_SECONDS,
    ):
        self._tokens = tokens
        self._sessions = sessions
        self._policy = policy
        self._clock = clock
        self._debounce = timedelta(seconds=debounce_seconds)

    @property
    def policy(self) -> TokenPolicy:
        return self._policy

    def _open_session(self, session_id: int, now: datetime) -> ClassSession:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise SessionNotFound(f"Session {session_id} not found")
        if session.has_ended(now):
            raise SessionClosed(f"Session {session_id} ended at {session.end_time.isoformat()}")
        return session

    def get_or_create_active_token(self, session_id: int, *, now: Optional[datetime] = None) -> SessionToken:
        now = now or self._clock()
        self._open_session(session_id, now)

        current = self._tokens.get_active_for_session(session_id, now=now)
        if current:
            return current
        return self._issue(session_id, now)

    def rotate(self, session_id: int, *, now: Optional[datetime] = None, force: bool = False) -> Optional[SessionToken]:
        """Supersede the active token and issue a fresh one.

        Returns None when no token was ever issued for the session. A session
        whose last token already lapsed (late or skipped tick) gets a fresh
        one. When the active token was issued within the debounce window and
        ``force`` is false, the call is treated as a repeat of the same tick
        and the current token is returned unchanged.
        """

        now = now or self._clock()
        self._open_session(session_id, now)

        current = self._tokens.get_active_for_session(session_id, now=now)
        if current is None:
            if self._tokens.get_latest_for_session(session_id) is None:
                logger.debug("Session %s has no token yet, nothing to rotate", session_id)
                return None
            logger.warning("Session %s token lapsed before rotation, issuing a new one", session_id)
            return self._issue(session_id, now)

        if not force and now - current.issued_at < self._debounce:
            logger.debug("Session %s rotated %s ago, skipping", session_id, now - current.issued_at)
            return current

        if self._tokens.supersede(current.token_id, at=now):
            logger.info("Superseded token %s of session %s", current.fingerprint, session_id)
        return self._issue(session_id, now)

    def _issue(self, session_id: int, now: datetime) -> SessionToken:
        try:
            token = self._tokens.create(
                session_id=session_id,
                token=generate_token(),
                issued_at=now,
                expires_at=now + self._policy.expiry_window,
            )
        except DuplicateActiveToken:
            # Another worker issued first; its token is the one to show.
            winner = self._tokens.get_active_for_session(session_id, now=now)
            if winner is None:
                logger.error("Token store reported an active token for session %s but none is visible", session_id)
                raise
            logger.info("Session %s token issued concurrently, using %s", session_id, winner.fingerprint)
            return winner

        logger.info(
            "Issued token %s for session %s (expires %s)",
            token.fingerprint,
            session_id,
            token.expires_at.isoformat(),
        )
        return token
