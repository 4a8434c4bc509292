# src/tasklist/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

APP_LOGGER = "tasklist"

# Loggers under the app namespace that only reach the console at this level or above.
QUIET_LOGGERS: Mapping[str, int] = {
    "tasklist.storage": logging.WARNING,
}

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: int | str, default: int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else default


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the prompt readable: app records pass (storage adapters only at
    WARNING+), captured warnings and third-party records only at ERROR+.
    """

    def __init__(
        self,
        app_logger: str = APP_LOGGER,
        quiet: Mapping[str, int] = QUIET_LOGGERS,
    ) -> None:
        super().__init__()
        self._app_prefix = app_logger + "."
        self._quiet = dict(quiet)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if not name.startswith(self._app_prefix):
            return record.levelno >= logging.ERROR

        for prefix, level in self._quiet.items():
            if name == prefix or name.startswith(prefix + "."):
                return record.levelno >= level
        return True


class _ConsoleFormatter(logging.Formatter):
    """One line per record; tracebacks are left to the file log."""

    def format(self, record: logging.LogRecord) -> str:
        exc_info, exc_text = record.exc_info, record.exc_text
        record.exc_info, record.exc_text = None, None
        try:
            return super().format(record)
        finally:
            record.exc_info, record.exc_text = exc_info, exc_text


def setup_logging(
    *,
    log_dir: str | Path = ".local/tasklist",
    log_name: str = APP_LOGGER,
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.DEBUG,
) -> Path:
    """
    Route everything to `<log_dir>/<log_name>.log` and a filtered stderr view.

    Levels may be given as ints or names ("debug", "WARNING"); unknown names
    fall back to INFO for the console and DEBUG for the file. Existing root
    handlers are replaced, so calling it twice does not duplicate output.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{log_name}.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(_resolve_level(console_level, logging.INFO))
    ch.setFormatter(_ConsoleFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(_resolve_level(file_level, logging.DEBUG))
    fh.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(fh)

    # warnings.warn(...) arrives as 'py.warnings', filtered like third-party output.
    logging.captureWarnings(True)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return log_file
