from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from qr_attendance.core.enums import TokenState
from qr_attendance.core.exceptions import ConfigurationError
from qr_attendance.tokens.generator import fingerprint, generate_token
from qr_attendance.tokens.model import SessionToken
from qr_attendance.tokens.policy import TokenPolicy


def test_default_policy_is_valid():
    policy = TokenPolicy().validate()

    assert policy.rotation_interval == timedelta(seconds=60)
    assert policy.expiry_window == timedelta(seconds=90)


@pytest.mark.parametrize(
    "rotation, expiry, jitter",
    [
        (91, 90, 0),  # rotation slower than expiry leaves a gap
        (0, 60, 0),
        (20, 29, 0),
        (60, 120, 0),
        (90, 90, 5),  # a jittered tick can land after expiry
        (60, 90, 31),
        (60, 90, -1),
    ],
)
def test_invalid_policy_rejected(rotation, expiry, jitter):
    with pytest.raises(ConfigurationError):
        TokenPolicy(
            rotation_interval_seconds=rotation, expiry_window_seconds=expiry, jitter_seconds=jitter
        ).validate()


@pytest.mark.parametrize("rotation, expiry, jitter", [(60, 60, 0), (60, 90, 30), (30, 30, 0)])
def test_policy_accepts_interval_plus_jitter_up_to_expiry(rotation, expiry, jitter):
    policy = TokenPolicy(
        rotation_interval_seconds=rotation, expiry_window_seconds=expiry, jitter_seconds=jitter
    ).validate()

    assert policy.jitter_seconds == jitter


def test_policy_reads_settings_module_attributes():
    class Settings:
        ROTATION_INTERVAL_SECONDS = "45"
        TOKEN_EXPIRY_SECONDS = "60"
        ROTATION_JITTER_SECONDS = "10"

    policy = TokenPolicy.from_settings(Settings)

    assert policy.rotation_interval_seconds == 45
    assert policy.expiry_window_seconds == 60
    assert policy.jitter_seconds == 10


def test_generated_tokens_are_unique_and_long():
    tokens = {generate_token() for _ in range(500)}

    assert len(tokens) == 500
    # 32 random bytes in urlsafe base64
    assert all(len(t) >= 43 for t in tokens)


def test_token_carries_no_session_or_student_data():
    token = generate_token()

    assert "CS101" not in token
    assert "." not in token  # not a JWT-style structured payload


def test_fingerprint_is_stable_and_not_raw():
    token = generate_token()

    assert fingerprint(token) == fingerprint(token)
    assert len(fingerprint(token)) == 16
    assert fingerprint(token) not in token


def test_token_states():
    now = datetime(2026, 3, 2, 9, 0, 0)
    token = SessionToken(
        token_id=1,
        session_id=1,
        token=generate_token(),
        issued_at=now,
        expires_at=now + timedelta(seconds=90),
    )

    assert token.state(now) == TokenState.ACTIVE
    assert token.state(now + timedelta(seconds=90)) == TokenState.EXPIRED
    superseded = replace(token, superseded_at=now + timedelta(seconds=10))
    assert superseded.state(now + timedelta(seconds=11)) == TokenState.SUPERSEDED


def test_repr_hides_raw_token():
    now = datetime(2026, 3, 2, 9, 0, 0)
    raw = generate_token()
    token = SessionToken(token_id=1, session_id=1, token=raw, issued_at=now, expires_at=now)

    assert raw not in repr(token)
