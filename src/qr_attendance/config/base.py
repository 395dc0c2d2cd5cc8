"""Settings shared by every environment. Values come from the process
environment (a ``.env`` file is loaded by ``create_app``)."""

import os

from ..core import constants


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
DEBUG = False
TESTING = False

# firestore | mysql
STORE_BACKEND = os.getenv("STORE_BACKEND", "firestore").lower()

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance"),
}
# apply database/schema.sql on startup (MySQL backend only; idempotent)
AUTO_INIT_DB = _flag("AUTO_INIT_DB")

FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS") or None
FIREBASE_STORAGE_BUCKET = os.getenv("FIREBASE_STORAGE_BUCKET") or None

# firebase | jwt
AUTH_BACKEND = os.getenv("AUTH_BACKEND", "firebase").lower()
JWT_SECRET = os.getenv("JWT_SECRET", "")

# firebase | local
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "firebase").lower()
EXPORT_DIR = os.getenv("EXPORT_DIR", "exports")
EXPORT_BASE_URL = os.getenv("EXPORT_BASE_URL", "http://localhost:5000/exports")

SESSION_DURATION_MINUTES = int(os.getenv("SESSION_DURATION_MINUTES", constants.DEFAULT_SESSION_DURATION_MINUTES))
QR_TTL_SECONDS = int(os.getenv("QR_TTL_SECONDS", constants.DEFAULT_QR_TTL_SECONDS))
QR_SCAN_GRACE_SECONDS = int(os.getenv("QR_SCAN_GRACE_SECONDS", constants.DEFAULT_QR_SCAN_GRACE_SECONDS))
LATE_THRESHOLD_MINUTES = int(os.getenv("LATE_THRESHOLD_MINUTES", constants.DEFAULT_LATE_THRESHOLD_MINUTES))
DUPLICATE_WINDOW_MINUTES = int(os.getenv("DUPLICATE_WINDOW_MINUTES", constants.DEFAULT_DUPLICATE_WINDOW_MINUTES))
CLEANUP_DEFAULT_DAYS = int(os.getenv("CLEANUP_DEFAULT_DAYS", constants.DEFAULT_CLEANUP_DAYS))
EXPORT_LOOKUP_WORKERS = int(os.getenv("EXPORT_LOOKUP_WORKERS", constants.DEFAULT_EXPORT_LOOKUP_WORKERS))

NOTIFICATIONS_EMAIL_ENABLED = _flag("NOTIFICATIONS_EMAIL_ENABLED")
MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
MAIL_USE_TLS = _flag("MAIL_USE_TLS", "1")
MAIL_USERNAME = os.getenv("MAIL_USERNAME") or None
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD") or None
MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "Attendance System <noreply@attendance.local>")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE") or None
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))
