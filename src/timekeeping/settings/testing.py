import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping_test"),
    "connection_timeout": 5,
}
DB_LOCK_TIMEOUT = 5

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

ATTENDANCE_TIMEZONE = "UTC"

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "public/uploads")
UPLOAD_URL_PREFIX = "uploads"
MAX_CONTENT_LENGTH = 1024 * 1024

LOG_LEVEL = "WARNING"
LOG_DIR = os.getenv("LOG_DIR")
