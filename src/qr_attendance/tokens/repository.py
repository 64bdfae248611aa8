from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import SessionToken


class TokenRepository(Protocol):
    """Token store interface.

    Implementations must give the rotator read-your-writes consistency for
    its supersede-then-create sequence.
    """

    def get(self, token: str) -> Optional[SessionToken]:
        raise NotImplementedError

    def get_active_for_session(self, session_id: int, *, now: datetime) -> Optional[SessionToken]:
        raise NotImplementedError

    def get_latest_for_session(self, session_id: int) -> Optional[SessionToken]:
        """Most recently issued token of the session in any state, or None if it never had one."""

        raise NotImplementedError

    def create(
        self,
        *,
        session_id: int,
        token: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> SessionToken:
        """Persist a new token.

        Raises DuplicateActiveToken when the session still has an active
        token at ``issued_at``.
        """

        raise NotImplementedError

    def supersede(self, token_id: int, *, at: datetime) -> bool:
        """Set superseded_at if still unset. Returns False if already superseded."""

        raise NotImplementedError
