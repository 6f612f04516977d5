"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024
ALLOWED_ATTACHMENT_EXTENSIONS = frozenset({".pdf", ".docx", ".xlsx", ".png", ".jpeg", ".jpg"})
DEFAULT_UPLOAD_URL_PREFIX = "/images"
DEFAULT_SESSION_DAYS = 7
MIN_PASSWORD_LENGTH = 6
