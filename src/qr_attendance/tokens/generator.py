from __future__ import annotations

import hashlib
import secrets

from ..core.constants import FINGERPRINT_LENGTH, TOKEN_ENTROPY_BYTES


def generate_token() -> str:
    """Random URL-safe bearer string with no embedded session or student data."""
    return secrets.token_urlsafe(TOKEN_ENTROPY_BYTES)


def fingerprint(token: str) -> str:
    """Short SHA-256 digest used wherever a token has to be referenced in logs."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
