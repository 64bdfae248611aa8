from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import ClassSession


class SessionRepository(Protocol):
    """Read-only view of class sessions.

    Sessions themselves are created by the scheduling screens; the token
    lifecycle only needs to look them up.
    """

    def get_by_id(self, session_id: int) -> Optional[ClassSession]:
        raise NotImplementedError

    def list_open(self, now: datetime) -> Sequence[ClassSession]:
        """Sessions whose end_time has not passed yet."""

        raise NotImplementedError
