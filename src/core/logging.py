"""Root logger setup, driven by Settings."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from src.core.config import Settings


def setup_logging(settings: Settings) -> Optional[Path]:
    """
    Route every record to stdout, plus one log file per process start when `settings.log_dir` is set.

    SQL statements go through the same handlers (logger `sqlalchemy.engine`) when `settings.sql_echo` is on.
    Returns the path of the log file, if any.
    """
    formatter = logging.Formatter(settings.log_format, datefmt=settings.log_date_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file = None
    if settings.log_dir is not None:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        started = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        log_file = log_dir / f"shootout-{started}.log"
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    # the app factory may run several times per process (tests)
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(settings.log_level)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.sql_echo else logging.WARNING
    )
    return log_file
