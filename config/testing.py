import os

# Tests run memory-only unless a directory is given explicitly
DB_DIRECTORY = os.getenv("DB_DIRECTORY", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

SESSION_TOKEN_LENGTH = int(os.getenv("SESSION_TOKEN_LENGTH", "16"))

WRITE_QUEUE_SIZE = int(os.getenv("WRITE_QUEUE_SIZE", "100"))

DEBUG = False
TESTING = True
