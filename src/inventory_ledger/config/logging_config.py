"""Logging configuration."""

import logging
import sys
from typing import Optional

from inventory_ledger.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure ledger logging.

    Records go to stdout, and additionally to ``<data_dir>/<log_file>`` when
    a log file name is configured. ``level`` overrides the configured level.
    """
    settings = get_settings()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.get_data_dir() / settings.log_file))

    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format=LOG_FORMAT,
        handlers=handlers,
    )

    # SQL statements only when echo is on
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.sql_echo else logging.WARNING
    )
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
