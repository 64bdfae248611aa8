"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_ROTATION_INTERVAL_SECONDS = 60
DEFAULT_TOKEN_EXPIRY_SECONDS = 90
DEFAULT_LATE_GRACE_MINUTES = 10

MIN_TOKEN_EXPIRY_SECONDS = 30
MAX_TOKEN_EXPIRY_SECONDS = 90

# Two scheduler ticks closer than this are treated as the same tick.
ROTATION_DEBOUNCE_SECONDS = 2

TOKEN_ENTROPY_BYTES = 32
FINGERPRINT_LENGTH = 16
