"""
Logging configuration for l2dat tools.

Console output goes to stderr, colored when it is a terminal. An optional
rotating file log is written as semicolon-separated CSV, one row per record,
with the thread name so load and save workers can be told apart.
"""

import csv
import io
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union


_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Console formatter; the level tag is colored, and the whole line from ERROR up."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        plain_level = record.levelname
        record.levelname = f"{color}{plain_level}{_RESET}"
        try:
            formatted = super().format(record)
        finally:
            record.levelname = plain_level

        if record.levelno >= logging.ERROR:
            return f"{color}{formatted}{_RESET}"
        return formatted


class CSVFormatter(logging.Formatter):
    """One CSV row per record: time;level;thread;logger;message."""

    COLUMNS = ("time", "level", "thread", "logger", "message")

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        row = io.StringIO()
        csv.writer(row, delimiter=";", lineterminator="").writerow([
            self.formatTime(record, self.datefmt),
            record.levelname,
            record.threadName,
            record.name,
            message,
        ])
        return row.getvalue()


CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
ROOT_LOGGER = "l2dat"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    color: Optional[bool] = None,
) -> logging.Logger:
    """Configure the ``l2dat`` logger hierarchy.

    Installs a stderr console handler (colored when *color* is True, or by
    default when stderr is a terminal) and, if *log_file* is given, a
    rotating CSV file handler that records everything from DEBUG up.
    Calling it again replaces the handlers it installed.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    if color is None:
        color = sys.stderr.isatty()
    formatter_cls = ColoredFormatter if color else logging.Formatter
    console.setFormatter(formatter_cls(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(CSVFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.propagate = False
    logger.debug(f"Logging configured at level {logging.getLevelName(level)}")
    return logger
