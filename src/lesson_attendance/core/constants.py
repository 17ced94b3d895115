"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_ATTENDANCE_WINDOW_MINUTES = 30
DEFAULT_LESSON_DURATION_MINUTES = 60
DEFAULT_LOW_ATTENDANCE_THRESHOLD = 75
RECENT_ATTENDANCE_LIMIT = 10

MINUTES_PER_DAY = 24 * 60
MIN_LESSON_DURATION_MINUTES = 30
MAX_LESSON_DURATION_MINUTES = 240
MIN_ATTENDANCE_WINDOW_MINUTES = 5
MAX_ATTENDANCE_WINDOW_MINUTES = 60

MIN_PASSWORD_LENGTH = 6
MIN_PROFILE_PASSWORD_LENGTH = 8
MIN_SUBJECT_LENGTH = 2

DEFAULT_BACKUP_NAME = "manual-backup"
RESTORE_CONFIRM_TOKEN = "yes-restore-data"
CLEAR_DATA_CONFIRM_TOKEN = "yes-delete-all-data"
