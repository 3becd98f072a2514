"""Shared ``honeybot`` logger for collection runs, recovery and the read API.

Console output follows ``LOG_LEVEL``; ``honeybot.log`` under the logs dir gets
everything at DEBUG and rotates by size, so consecutive runs (collect, then
recover, then sync) read as one history.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from honeybot.config import settings

LOG_FILE = "honeybot.log"
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 5


def _setup_logger(name: str = "honeybot") -> logging.Logger:
    log = logging.getLogger(name)
    log.setLevel(logging.DEBUG)

    # Prevent duplicate handlers on reimport
    if log.handlers:
        return log

    fmt = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(settings.LOG_LEVEL)
    console.setFormatter(fmt)
    log.addHandler(console)

    try:
        file_h = RotatingFileHandler(
            settings.LOGS_DIR / LOG_FILE,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        log.warning("File logging disabled (%s): console only", e)
        return log

    file_h.setLevel(logging.DEBUG)
    file_h.setFormatter(fmt)
    log.addHandler(file_h)
    return log


logger = _setup_logger()
