# lootlook/config/logging_config.py

"""Per-run logging for extraction sessions.

Each launch writes ``logs/run_<timestamp>.log``. The file opens with a
header naming the screenshot directory, browser mode and device profile,
so a snapshot's ``image_path`` can be traced back to the run that
captured it. Extraction failures are swallowed into partial snapshots,
which makes this file the only record of why a price was missing.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from lootlook.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | "
    "%(message)s"
)
_CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _file_handler(log_file: Path) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _console_handler() -> logging.Handler:
    """stderr handler; stdout stays clean for JSON snapshot output."""
    level = logging.getLevelName(Settings.LOG_CONSOLE_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    return handler


def _quiet_third_party() -> None:
    for name in Settings.QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _write_run_header(logger: logging.Logger, log_file: Path) -> None:
    logger.info("Run log: %s", log_file)
    logger.info("Screenshots dir: %s", Settings.SCREENSHOTS_DIR)
    logger.info(
        "Browser: headless=%s profile=%s locale=%s",
        Settings.HEADLESS,
        Settings.DEVICE_PROFILE,
        Settings.BROWSER_LOCALE,
    )
    logger.info("Selector table: %s", Settings.SELECTORS_PATH)


def setup_logging() -> Path:
    """Attach the per-run file and console handlers to ``lootlook``.

    Returns:
        Path of the log file for this run.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    app_logger = logging.getLogger("lootlook")
    app_logger.setLevel(logging.DEBUG)
    _quiet_third_party()

    # Repeated calls (e.g. tests) keep the first set of handlers
    if app_logger.handlers:
        return log_file

    app_logger.addHandler(_file_handler(log_file))
    app_logger.addHandler(_console_handler())
    _write_run_header(app_logger, log_file)
    return log_file
