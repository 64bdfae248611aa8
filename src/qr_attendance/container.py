from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceCorrectionService, CheckinService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditTrail
from .common.datetime_utils import now_utc
from .core.constants import DEFAULT_LATE_GRACE_MINUTES
from .core.exceptions import ConfigurationError
from .database.connection import DBConfig, DatabaseConnection
from .scheduling.rotation_scheduler import RotationScheduler
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .tokens.mysql_token_repository import MySQLTokenRepository
from .tokens.policy import TokenPolicy
from .tokens.repository import TokenRepository
from .tokens.service import TokenService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    sessions_repo: SessionRepository
    tokens_repo: TokenRepository
    attendance_repo: AttendanceRepository
    audit_repo: AuditRepository

    auth_service: AuthService
    token_service: TokenService
    checkin_service: CheckinService
    correction_service: AttendanceCorrectionService
    rotation_scheduler: RotationScheduler


def assemble(
    *,
    users_repo: UserRepository,
    sessions_repo: SessionRepository,
    tokens_repo: TokenRepository,
    attendance_repo: AttendanceRepository,
    audit_repo: AuditRepository,
    policy: TokenPolicy,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    clock: Callable[[], datetime] = now_utc,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    policy.validate()
    if int(grace_minutes) < 0:
        raise ConfigurationError("LATE_GRACE_MINUTES must not be negative")

    audit_trail = AuditTrail(audit_repo)
    token_service = TokenService(tokens_repo, sessions_repo, policy=policy, clock=clock)
    checkin_service = CheckinService(
        tokens_repo,
        sessions_repo,
        attendance_repo,
        audit_trail,
        grace_minutes=grace_minutes,
        clock=clock,
    )
    correction_service = AttendanceCorrectionService(attendance_repo, sessions_repo, audit_trail, clock=clock)
    rotation_scheduler = RotationScheduler(
        token_service,
        sessions_repo,
        interval_seconds=policy.rotation_interval_seconds,
        jitter_seconds=policy.jitter_seconds,
        clock=clock,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        tokens_repo=tokens_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        auth_service=AuthService(users_repo),
        token_service=token_service,
        checkin_service=checkin_service,
        correction_service=correction_service,
        rotation_scheduler=rotation_scheduler,
    )


def build_container(*, db_config: dict, settings) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        tokens_repo=MySQLTokenRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        policy=TokenPolicy.from_settings(settings),
        grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
        conn=conn,
    )
