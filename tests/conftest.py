from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from qr_attendance.attendance.service import CheckinService
from qr_attendance.audit.service import AuditTrail
from qr_attendance.sessions.model import ClassSession
from qr_attendance.tokens.policy import TokenPolicy
from qr_attendance.tokens.service import TokenService

from .fakes import FACULTY_ID, FakeClock, InMemoryAttendance, InMemoryAudit, InMemorySessions, InMemoryTokens


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def class_session(fixed_now) -> ClassSession:
    return ClassSession(
        session_id=1,
        course_code="CS101",
        faculty_id=FACULTY_ID,
        start_time=fixed_now,
        end_time=fixed_now + timedelta(hours=2),
    )


@pytest.fixture
def sessions(class_session) -> InMemorySessions:
    return InMemorySessions(class_session)


@pytest.fixture
def tokens() -> InMemoryTokens:
    return InMemoryTokens()


@pytest.fixture
def attendance() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def audit() -> InMemoryAudit:
    return InMemoryAudit()


@pytest.fixture
def policy() -> TokenPolicy:
    return TokenPolicy(rotation_interval_seconds=60, expiry_window_seconds=90)


@pytest.fixture
def token_service(tokens, sessions, policy, clock) -> TokenService:
    return TokenService(tokens, sessions, policy=policy, clock=clock)


@pytest.fixture
def checkin_service(tokens, sessions, attendance, audit, clock) -> CheckinService:
    return CheckinService(tokens, sessions, attendance, AuditTrail(audit), grace_minutes=10, clock=clock)
