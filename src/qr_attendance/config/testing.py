import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance_test"),
}

ROTATION_INTERVAL_SECONDS = 60
TOKEN_EXPIRY_SECONDS = 90
LATE_GRACE_MINUTES = 10
ROTATION_JITTER_SECONDS = 0
ROTATION_SCHEDULER_ENABLED = False

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
