from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..audit.service import AuditTrail
from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty, require_positive_int
from ..core.constants import DEFAULT_LATE_GRACE_MINUTES
from ..core.enums import AttendanceStatus, AuditOutcome, MarkedBy, Role
from ..core.exceptions import (
    AuthorizationError,
    InvalidToken,
    SessionClosed,
    SessionNotFound,
    TokenExpired,
    ValidationError,
)
from ..sessions.repository import SessionRepository
from ..tokens.generator import fingerprint
from ..tokens.repository import TokenRepository
from .lateness import checkin_status
from .model import AttendanceRecord, CheckinResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class CheckinService:
    """Validates a scanned token and commits attendance at most once.

    No locking happens here. Uniqueness of (session, student) is the
    attendance store's job, so a repeated or concurrent scan simply gets the
    stored record back with ``created=False``.
    """

    def __init__(
        self,
        tokens: TokenRepository,
        sessions: SessionRepository,
        attendance: AttendanceRepository,
        audit: AuditTrail,
        *,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._tokens = tokens
        self._sessions = sessions
        self._attendance = attendance
        self._audit = audit
        self._grace_minutes = int(grace_minutes)
        self._clock = clock

    def check_in(self, token: str, student_id: int, *, now: Optional[datetime] = None) -> CheckinResult:
        now = now or self._clock()
        token = require_non_empty(token, "token")
        student_id = require_positive_int(student_id, "studentId")
        token_fp = fingerprint(token)

        issued = self._tokens.get(token)
        if issued is None:
            self._reject(None, student_id, token_fp, AuditOutcome.INVALID_TOKEN, now)
            raise InvalidToken("Unknown QR token")

        # A superseded token is dead at once, not only after its own expiry.
        if not issued.is_active(now):
            self._reject(issued.session_id, student_id, token_fp, AuditOutcome.TOKEN_EXPIRED, now,
                         detail=issued.state(now).value)
            raise TokenExpired("QR token has expired")

        session = self._sessions.get_by_id(issued.session_id)
        if session is None:
            self._reject(issued.session_id, student_id, token_fp, AuditOutcome.SESSION_NOT_FOUND, now)
            raise SessionNotFound(f"Session {issued.session_id} not found")
        if session.has_ended(now):
            self._reject(session.session_id, student_id, token_fp, AuditOutcome.SESSION_CLOSED, now)
            raise SessionClosed(f"Session {session.session_id} has ended")

        status = checkin_status(now=now, session=session, grace_minutes=self._grace_minutes)

        result = self._attendance.insert_if_absent(
            session_id=session.session_id,
            student_id=student_id,
            status=status,
            marked_at=now,
            marked_by=MarkedBy.SELF,
        )

        outcome = AuditOutcome.CHECKED_IN if result.created else AuditOutcome.ALREADY_MARKED
        self._audit.record(
            session_id=session.session_id,
            student_id=student_id,
            token_fingerprint=token_fp,
            outcome=outcome,
            at=now,
            detail=result.record.status.value,
        )
        logger.info(
            "Check-in session=%s student=%s status=%s created=%s",
            session.session_id,
            student_id,
            result.record.status.value,
            result.created,
        )

        return CheckinResult(
            session_id=session.session_id,
            status=result.record.status,
            created=result.created,
            marked_at=result.record.marked_at,
        )

    def _reject(
        self,
        session_id: Optional[int],
        student_id: int,
        token_fp: str,
        outcome: AuditOutcome,
        now: datetime,
        *,
        detail: Optional[str] = None,
    ) -> None:
        logger.warning(
            "Check-in rejected session=%s student=%s token=%s outcome=%s",
            session_id,
            student_id,
            token_fp,
            outcome.value,
        )
        self._audit.record(
            session_id=session_id,
            student_id=student_id,
            token_fingerprint=token_fp,
            outcome=outcome,
            at=now,
            detail=detail,
        )


class AttendanceCorrectionService:
    """Use case: faculty/admin override of a stored attendance status."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        sessions: SessionRepository,
        audit: AuditTrail,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._sessions = sessions
        self._audit = audit
        self._clock = clock

    def _authorize(self, *, current_role: Role, user_id: int, session_id: int):
        if current_role not in {Role.FACULTY, Role.ADMIN}:
            raise AuthorizationError("Only faculty or admin can manage attendance")

        session = self._sessions.get_by_id(session_id)
        if not session:
            raise SessionNotFound(f"Session {session_id} not found")
        if current_role == Role.FACULTY and session.faculty_id != int(user_id):
            raise AuthorizationError("Faculty can only manage their own sessions")
        return session

    def list_for_session(self, *, current_role: Role, user_id: int, session_id: int) -> Sequence[AttendanceRecord]:
        self._authorize(current_role=current_role, user_id=user_id, session_id=session_id)
        return self._attendance.list_for_session(session_id)

    def correct(
        self,
        *,
        current_role: Role,
        corrected_by: int,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        reason: str,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        self._authorize(current_role=current_role, user_id=corrected_by, session_id=session_id)
        reason = require_non_empty(reason, "reason")

        record = self._attendance.get_for_session_and_student(session_id, student_id)
        if not record:
            raise ValidationError(f"Student {student_id} has no attendance in session {session_id}")

        marked_by = MarkedBy.ADMIN if current_role == Role.ADMIN else MarkedBy.FACULTY
        ok = self._attendance.correct_status(
            attendance_id=record.attendance_id,
            status=status,
            corrected_by=corrected_by,
            marked_by=marked_by,
            reason=reason,
            corrected_at=now,
        )
        if not ok:
            raise ValidationError("Attendance correction failed")

        self._audit.record(
            session_id=session_id,
            student_id=student_id,
            token_fingerprint=None,
            outcome=AuditOutcome.CORRECTED,
            at=now,
            detail=f"{record.status.value}->{status.value} by {corrected_by}: {reason}",
        )
        logger.info(
            "Attendance corrected session=%s student=%s %s->%s by %s",
            session_id,
            student_id,
            record.status.value,
            status.value,
            corrected_by,
        )
        return replace(record, status=status, marked_by=marked_by)
