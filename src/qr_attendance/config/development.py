import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance"),
}

ROTATION_INTERVAL_SECONDS = int(os.getenv("ROTATION_INTERVAL_SECONDS", "60"))
TOKEN_EXPIRY_SECONDS = int(os.getenv("TOKEN_EXPIRY_SECONDS", "90"))
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "10"))
ROTATION_JITTER_SECONDS = int(os.getenv("ROTATION_JITTER_SECONDS", "0"))
ROTATION_SCHEDULER_ENABLED = bool(int(os.getenv("ROTATION_SCHEDULER_ENABLED", "1")))

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo users and a two-hour session on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
