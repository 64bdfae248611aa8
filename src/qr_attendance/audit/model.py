from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AuditOutcome


@dataclass(frozen=True)
class AuditEntry:
    """One check-in attempt or correction.

    Only a fingerprint of the scanned token is kept; the raw value is a
    bearer secret while it is valid.
    """

    session_id: Optional[int]
    student_id: int
    token_fingerprint: Optional[str]
    outcome: AuditOutcome
    created_at: datetime
    detail: Optional[str] = None
