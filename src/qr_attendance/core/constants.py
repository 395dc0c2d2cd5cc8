"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DURATION_MINUTES = 60
DEFAULT_QR_TTL_SECONDS = 60
DEFAULT_QR_SCAN_GRACE_SECONDS = 30
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_DUPLICATE_WINDOW_MINUTES = 10
DEFAULT_CLEANUP_DAYS = 7
DEFAULT_EXPORT_LOOKUP_WORKERS = 8

MAX_ID_ATTEMPTS = 10
FALLBACK_ID_PREFIX = "STU"

NOT_AVAILABLE = "N/A"
UNKNOWN_STUDENT = "Unknown Student"
UNKNOWN_CLASS = "Unknown Class"
ALL_TIME = "All time"
