from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class ClassSession:
    """Domain entity: one scheduled class meeting students check in to."""

    session_id: int
    course_code: str
    faculty_id: int
    start_time: datetime
    end_time: datetime

    def has_ended(self, now: datetime) -> bool:
        return now > self.end_time

    def on_time_deadline(self, grace_minutes: int) -> datetime:
        return self.start_time + timedelta(minutes=grace_minutes)
