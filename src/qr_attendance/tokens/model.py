from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import TokenState
from .generator import fingerprint


@dataclass(frozen=True)
class SessionToken:
    """Domain entity: one QR token issued for a class session.

    Rows are never deleted; a superseded or expired token stays for audit.
    """

    token_id: int
    session_id: int
    token: str
    issued_at: datetime
    expires_at: datetime
    superseded_at: Optional[datetime] = None

    def state(self, now: datetime) -> TokenState:
        if self.superseded_at is not None:
            return TokenState.SUPERSEDED
        if now >= self.expires_at:
            return TokenState.EXPIRED
        return TokenState.ACTIVE

    def is_active(self, now: datetime) -> bool:
        return self.state(now) == TokenState.ACTIVE

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.token)

    def __repr__(self) -> str:
        # Keep the bearer secret out of logs and tracebacks.
        return (
            f"SessionToken(token_id={self.token_id}, session_id={self.session_id}, "
            f"fingerprint={self.fingerprint!r}, issued_at={self.issued_at!r}, "
            f"expires_at={self.expires_at!r}, superseded_at={self.superseded_at!r})"
        )
