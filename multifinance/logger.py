"""Per-module loggers writing to stdout and a rotating daily log file."""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import sys
import threading
import time
from datetime import date
from logging.handlers import RotatingFileHandler
from pathlib import Path

_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5
_MAX_AGE_SECONDS = 7 * 24 * 60 * 60
_FORMAT = 'time="%(asctime)s" level=%(level)s msg="%(message)s" module=%(app_module)s'
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_lock = threading.Lock()
_loggers: dict[str, logging.Logger] = {}


class _ModuleFilter(logging.Filter):
    def __init__(self, module: str) -> None:
        super().__init__()
        self._module = module

    def filter(self, record: logging.LogRecord) -> bool:
        record.app_module = self._module
        record.level = record.levelname.lower()
        return True


def _gzip_name(name: str) -> str:
    return name + ".gz"


def _prune_old_backups(directory: Path) -> None:
    cutoff = time.time() - _MAX_AGE_SECONDS
    for backup in directory.glob("app-*.log.*"):
        try:
            if backup.stat().st_mtime < cutoff:
                backup.unlink()
        except OSError:
            pass


def _gzip_rotate(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)
    _prune_old_backups(Path(dest).parent)


def get_logger(module: str = "", log_dir: str | os.PathLike[str] = "storage/logs") -> logging.Logger:
    """Return the cached logger for ``module``, creating it on first use."""
    module = module or "app"
    with _lock:
        cached = _loggers.get(module)
        if cached is not None:
            return cached

        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / f"app-{date.today():%Y-%m-%d}.log"

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
            delay=True,
        )
        file_handler.namer = _gzip_name
        file_handler.rotator = _gzip_rotate
        stream_handler = logging.StreamHandler(sys.stdout)

        formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)
        module_filter = _ModuleFilter(module)

        logger = logging.getLogger(f"multifinance.{module}")
        logger.setLevel(logging.INFO)
        logger.propagate = False
        for handler in (stream_handler, file_handler):
            handler.setFormatter(formatter)
            handler.addFilter(module_filter)
            logger.addHandler(handler)

        _loggers[module] = logger
        return logger