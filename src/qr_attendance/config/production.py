import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

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
ROTATION_JITTER_SECONDS = int(os.getenv("ROTATION_JITTER_SECONDS", "5"))
ROTATION_SCHEDULER_ENABLED = bool(int(os.getenv("ROTATION_SCHEDULER_ENABLED", "1")))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
