import os

# Directory holding the database files; empty means memory only
DB_DIRECTORY = os.getenv("DB_DIRECTORY", "db/")

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

SESSION_TOKEN_LENGTH = int(os.getenv("SESSION_TOKEN_LENGTH", "32"))

# Pending disk writes allowed before callers block
WRITE_QUEUE_SIZE = int(os.getenv("WRITE_QUEUE_SIZE", "1000"))

DEBUG = True
