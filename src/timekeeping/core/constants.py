"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIMEZONE = "UTC"
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10
DEFAULT_LOCK_TIMEOUT_SECONDS = 10
DEFAULT_HISTORY_LIMIT = 31
MAX_HISTORY_LIMIT = 366
MAX_SYNC_BATCH_SIZE = 1000
RETRY_AFTER_SECONDS = 2

ALLOWED_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})
