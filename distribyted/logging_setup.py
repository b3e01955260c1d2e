"""Logging to the console and to a rolling log file."""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import time
from datetime import datetime
from pathlib import Path

from distribyted.config import Log

FILE_NAME = "distribyted.log"
LOGGER_NAME = "distribyted"

_DEFAULT_MAX_SIZE_MB = 100
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class _RollingFileHandler(logging.handlers.RotatingFileHandler):
    """Rotates into timestamped backups, pruned by count and by age."""

    def __init__(self, filename: Path, max_size_mb: int, max_backups: int, max_age_days: int) -> None:
        size = max_size_mb if max_size_mb > 0 else _DEFAULT_MAX_SIZE_MB
        super().__init__(filename, maxBytes=size * 1024 * 1024, encoding="utf-8")
        self.max_backups = max_backups
        self.max_age_days = max_age_days

    def _backup_path(self) -> Path:
        base = Path(self.baseFilename)
        now = datetime.now()
        stamp = now.strftime("%Y-%m-%dT%H-%M-%S") + f".{now.microsecond // 1000:03d}"
        candidate = base.with_name(f"{base.stem}-{stamp}{base.suffix}")
        counter = 1
        while candidate.exists():
            candidate = base.with_name(f"{base.stem}-{stamp}-{counter}{base.suffix}")
            counter += 1
        return candidate

    def _backups(self) -> list[Path]:
        base = Path(self.baseFilename)
        found = base.parent.glob(f"{base.stem}-*{base.suffix}")
        return sorted(found, key=lambda p: p.stat().st_mtime, reverse=True)

    def _prune(self) -> None:
        backups = self._backups()
        stale: list[Path] = []
        if self.max_age_days > 0:
            cutoff = time.time() - self.max_age_days * 24 * 3600
            stale = [p for p in backups if p.stat().st_mtime < cutoff]
            backups = [p for p in backups if p not in stale]
        if self.max_backups > 0:
            stale.extend(backups[self.max_backups:])
        for path in stale:
            path.unlink(missing_ok=True)

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None
        if os.path.exists(self.baseFilename):
            os.replace(self.baseFilename, self._backup_path())
        self._prune()
        if not self.delay:
            self.stream = self._open()


def _rolling_file(config: Log) -> logging.Handler | None:
    directory = Path(config.path)
    try:
        directory.mkdir(mode=0o744, parents=True, exist_ok=True)
    except OSError:
        logging.getLogger(LOGGER_NAME).exception(
            "can't create log directory: %s", config.path
        )
        return None
    return _RollingFileHandler(
        directory / FILE_NAME, config.max_size, config.max_backups, config.max_age
    )


def load(config: Log) -> logging.Logger:
    """Configure the application logger from ``config`` and return it."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    formatter = logging.Formatter(_FORMAT)
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    rolling = _rolling_file(config)
    if rolling is not None:
        rolling.setFormatter(formatter)
        logger.addHandler(rolling)

    logger.setLevel(logging.DEBUG if config.debug else logging.INFO)
    return logger