from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from ..core.constants import (
    DEFAULT_ROTATION_INTERVAL_SECONDS,
    DEFAULT_TOKEN_EXPIRY_SECONDS,
    MAX_TOKEN_EXPIRY_SECONDS,
    MIN_TOKEN_EXPIRY_SECONDS,
)
from ..core.exceptions import ConfigurationError


@dataclass(frozen=True)
class TokenPolicy:
    """Rotation cadence and lifetime of QR tokens.

    The rotation interval plus the scheduler jitter must not exceed the
    expiry window, otherwise a display would be left with no valid token
    between two ticks.
    """

    rotation_interval_seconds: int = DEFAULT_ROTATION_INTERVAL_SECONDS
    expiry_window_seconds: int = DEFAULT_TOKEN_EXPIRY_SECONDS
    jitter_seconds: int = 0

    @property
    def rotation_interval(self) -> timedelta:
        return timedelta(seconds=self.rotation_interval_seconds)

    @property
    def expiry_window(self) -> timedelta:
        return timedelta(seconds=self.expiry_window_seconds)

    def validate(self) -> "TokenPolicy":
        if not MIN_TOKEN_EXPIRY_SECONDS <= self.expiry_window_seconds <= MAX_TOKEN_EXPIRY_SECONDS:
            raise ConfigurationError(
                f"TOKEN_EXPIRY_SECONDS must be between {MIN_TOKEN_EXPIRY_SECONDS} "
                f"and {MAX_TOKEN_EXPIRY_SECONDS}, got {self.expiry_window_seconds}"
            )
        if self.rotation_interval_seconds <= 0:
            raise ConfigurationError("ROTATION_INTERVAL_SECONDS must be positive")
        if self.rotation_interval_seconds > self.expiry_window_seconds:
            raise ConfigurationError(
                "ROTATION_INTERVAL_SECONDS "
                f"({self.rotation_interval_seconds}) must not exceed TOKEN_EXPIRY_SECONDS "
                f"({self.expiry_window_seconds})"
            )
        if self.jitter_seconds < 0:
            raise ConfigurationError("ROTATION_JITTER_SECONDS must not be negative")
        if self.rotation_interval_seconds + self.jitter_seconds > self.expiry_window_seconds:
            raise ConfigurationError(
                "ROTATION_INTERVAL_SECONDS + ROTATION_JITTER_SECONDS "
                f"({self.rotation_interval_seconds} + {self.jitter_seconds}) must not exceed "
                f"TOKEN_EXPIRY_SECONDS ({self.expiry_window_seconds})"
            )
        return self

    @classmethod
    def from_settings(cls, settings) -> "TokenPolicy":
        return cls(
            rotation_interval_seconds=int(
                getattr(settings, "ROTATION_INTERVAL_SECONDS", DEFAULT_ROTATION_INTERVAL_SECONDS)
            ),
            expiry_window_seconds=int(getattr(settings, "TOKEN_EXPIRY_SECONDS", DEFAULT_TOKEN_EXPIRY_SECONDS)),
            jitter_seconds=int(getattr(settings, "ROTATION_JITTER_SECONDS", 0)),
        )
