from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from config import get_settings_module

from .container import Container, build_container

logger = logging.getLogger(__name__)


def create_container(*, db_directory: Optional[str | Path] = None) -> Container:
    """Load settings for APP_ENV, configure logging and start the database.

    db_directory overrides the DB_DIRECTORY setting. The caller owns the
    returned container and must call shutdown() so pending writes reach disk.
    """
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if db_directory is None:
        db_directory = getattr(settings, "DB_DIRECTORY", "") or None

    logger.info(
        "settings=%s db=%s",
        settings_module,
        db_directory if db_directory else "(memory only)",
    )

    return build_container(
        db_directory=db_directory,
        session_token_length=int(getattr(settings, "SESSION_TOKEN_LENGTH", 32)),
        write_queue_size=int(getattr(settings, "WRITE_QUEUE_SIZE", 1000)),
    )
