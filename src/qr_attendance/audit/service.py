from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..core.enums import AuditOutcome
from .model import AuditEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditTrail:
    """Best-effort audit writer.

    A failing audit store is logged and swallowed: attendance correctness
    never depends on the audit row being written.
    """

    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def record(
        self,
        *,
        session_id: Optional[int],
        student_id: int,
        token_fingerprint: Optional[str],
        outcome: AuditOutcome,
        at: datetime,
        detail: Optional[str] = None,
    ) -> bool:
        entry = AuditEntry(
            session_id=session_id,
            student_id=student_id,
            token_fingerprint=token_fingerprint,
            outcome=outcome,
            created_at=at,
            detail=detail,
        )
        try:
            self._audit.append(entry)
        except Exception:
            logger.exception(
                "Audit write failed for session=%s student=%s outcome=%s",
                session_id,
                student_id,
                outcome.value,
            )
            return False
        return True
