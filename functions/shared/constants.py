"""
Constants shared across the backend.
"""

REPORT_PHOTOS_BUCKET = "report-photos"
AVATARS_BUCKET = "avatars"

MIN_BOX_RATING = 1
MAX_BOX_RATING = 5
# Secondary ratings use 0 for "not rated".
MAX_SECONDARY_RATING = 5

MIN_PASSWORD_LENGTH = 6

DASHBOARD_RECENT_REPORTS = 5
UNKNOWN_CREATOR_NAME = "User"

MAX_FEEDBACK_LENGTH = 2000
MAX_NAME_LENGTH = 200
# Loose shape check; the auth service does the real validation.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
