"""Anchorlight - resilient text anchors and highlight restoration.

Captures a durable description of a selected span of text, then finds the
same span again after the document reloads, re-renders or mutates, and
keeps a highlight marker around it.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

__version__ = "0.1.0"

_LOG_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def _setup_logging(log_dir: Path | None = None, console_level: str = "WARNING") -> None:
    """Send anchorlight logs to a per-process rotating file and stderr.

    Safe to call more than once; handlers are only attached the first time.
    """
    package_logger = logging.getLogger(__name__)
    if package_logger.handlers:
        return

    log_dir = log_dir or Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"anchorlight.{os.getpid()}.log"

    package_logger.setLevel(logging.DEBUG)

    # Rotate at 5MB, keep 3 backups
    file_handler = RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_LOG_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    )

    # stderr stays quiet so CLI output is not interleaved with retry chatter
    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    package_logger.addHandler(file_handler)
    package_logger.addHandler(console_handler)

    package_logger.debug("Logging configured. Log file: %s", log_file.absolute())
