"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SESSION_CODE_DIGITS = 6
MANUAL_CODE_PREFIX = "MANUAL_"
QR_CODE_PREFIX = "QR_"

RANDOM_SELECTION_SIZE = 3

DEFAULT_TEACHER = "Unassigned"
DEFAULT_SEMESTER = "Current semester"
UNKNOWN_STUDENT_NAME = "Unknown student"

DEFAULT_TOKEN_HOURS = 24
MIN_PASSWORD_LENGTH = 6
