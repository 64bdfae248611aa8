from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.datetime_utils import now_utc
from ..core.exceptions import DomainError
from ..sessions.repository import SessionRepository
from ..tokens.service import TokenService

logger = logging.getLogger(__name__)

JOB_ID = "rotate_session_tokens"


class RotationScheduler:
    """Periodic driver that rotates the token of every open session.

    One sweep per interval covers all sessions. Sessions that never had a
    token issued are left alone, a session whose token lapsed before the
    tick gets a fresh one, and ended sessions drop out of ``list_open``,
    which stops their rotation.
    """

    def __init__(
        self,
        token_service: TokenService,
        sessions: SessionRepository,
        *,
        interval_seconds: int,
        jitter_seconds: int = 0,
        clock: Callable[[], datetime] = now_utc,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self._token_service = token_service
        self._sessions = sessions
        self._interval_seconds = int(interval_seconds)
        self._jitter_seconds = int(jitter_seconds)
        self._clock = clock
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def run_once(self, now: Optional[datetime] = None) -> int:
        """Rotate every open session once.

        Without an explicit ``now`` each session reads the clock right before
        its own rotation, so a slow sweep does not issue already-aged tokens.
        """

        started = now or self._clock()
        rotated = 0
        for session in self._sessions.list_open(started):
            at = now or self._clock()
            try:
                token = self._token_service.rotate(session.session_id, now=at)
            except DomainError as e:
                # Session ended between list_open and rotate, etc.
                logger.info("Skipped rotation for session %s: %s", session.session_id, e)
                continue
            except Exception:
                logger.exception("Rotation failed for session %s", session.session_id)
                continue
            # A debounced call hands back the previous token, issued before `at`.
            if token is not None and token.issued_at == at:
                rotated += 1
        logger.debug("Rotation sweep at %s rotated %d session(s)", started.isoformat(), rotated)
        return rotated

    def start(self) -> None:
        self._scheduler.add_job(
            func=self.run_once,
            trigger="interval",
            seconds=self._interval_seconds,
            jitter=self._jitter_seconds or None,
            id=JOB_ID,
            name="Rotate QR session tokens",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Token rotation scheduler started (every %ss)", self._interval_seconds)

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Token rotation scheduler stopped")
