# price_sync/config/logging_config.py

"""Log routing for one price sync run.

A run writes ``logs/run_<YYYYmmdd_HHMMSS>.log`` holding every page
request, retry, match decision and price write at DEBUG.  Only what an
operator must act on reaches stderr: per-record failures and the
aborts raised when the catalog read or the remote fetch fails.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from price_sync.config.settings import Settings

ROOT_LOGGER = "price_sync"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_STDERR_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _run_log_path(logs_dir: Path) -> Path:
    logs_dir.mkdir(parents=True, exist_ok=True)
    started = datetime.now().strftime("%Y%m%d_%H%M%S")
    return logs_dir / f"run_{started}.log"


def _handler(
    handler: logging.Handler, level: int, fmt: str,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATE_FORMAT))
    return handler


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run log and the stderr handler to ``price_sync``.

    Args:
        logs_dir: Where the run log goes. Defaults to
            ``Settings.LOGS_DIR``.

    Returns:
        Path of this run's log file.  When handlers are already
        attached the existing ones are kept and no file is opened.
    """
    log_file = _run_log_path(logs_dir or Settings.LOGS_DIR)

    sync_logger = logging.getLogger(ROOT_LOGGER)
    sync_logger.setLevel(logging.DEBUG)
    if sync_logger.handlers:
        return log_file

    sync_logger.addHandler(
        _handler(
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.DEBUG,
            _FILE_FORMAT,
        )
    )
    sync_logger.addHandler(
        _handler(
            logging.StreamHandler(sys.stderr), logging.WARNING, _STDERR_FORMAT
        )
    )

    sync_logger.info("Price sync run log: %s", log_file)
    return log_file
