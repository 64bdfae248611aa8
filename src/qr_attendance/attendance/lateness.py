from __future__ import annotations

from datetime import datetime

from ..core.enums import AttendanceStatus
from ..sessions.model import ClassSession


def checkin_status(*, now: datetime, session: ClassSession, grace_minutes: int) -> AttendanceStatus:
    """PRESENT up to and including ``start_time + grace``, LATE afterwards."""
    if now <= session.on_time_deadline(grace_minutes):
        return AttendanceStatus.PRESENT
    return AttendanceStatus.LATE
