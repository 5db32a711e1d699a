import os

DB_DIRECTORY = os.getenv("DB_DIRECTORY", "/var/lib/timekeeping/db/")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

SESSION_TOKEN_LENGTH = int(os.getenv("SESSION_TOKEN_LENGTH", "32"))

WRITE_QUEUE_SIZE = int(os.getenv("WRITE_QUEUE_SIZE", "1000"))

DEBUG = False
