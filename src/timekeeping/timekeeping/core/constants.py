"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_EMPLOYEE_COUNT = 100_000_000
MAX_EMPLOYEE_NAME_SIZE = 30
MAX_PROJECT_COUNT = 100_000_000
MAX_PROJECT_NAME_SIZE = 30
MAX_USER_COUNT = 100_000_000
MAX_DETAILS_LENGTH = 500
MINUTES_PER_DAY = 24 * 60
MIN_PASSWORD_LENGTH = 12

ADMINISTRATOR_NAME = "Administrator"

DATABASE_VERSION = 1
DATABASE_FILE_SUFFIX = ".db"
VERSION_FILENAME = "version.txt"
TIME_ENTRIES_DIRECTORY = "timeentries"

DEFAULT_SESSION_TOKEN_LENGTH = 32
DEFAULT_WRITE_QUEUE_SIZE = 1000
