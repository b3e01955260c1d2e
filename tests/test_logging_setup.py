import logging
import os
import time

import pytest

from distribyted.config import Log
from distribyted.logging_setup import FILE_NAME, load


@pytest.fixture
def loaded():
    loggers = []

    def _load(config):
        logger = load(config)
        loggers.append(logger)
        return logger

    yield _load
    for logger in loggers:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def _file_handler(logger):
    return next(h for h in logger.handlers if isinstance(h, logging.FileHandler))


def test_writes_to_log_file(tmp_path, loaded):
    logger = loaded(Log(path=str(tmp_path / "logs"), max_backups=2, max_size=1))
    logger.info("hello from test")
    for handler in logger.handlers:
        handler.flush()
    content = (tmp_path / "logs" / FILE_NAME).read_text(encoding="utf-8")
    assert "hello from test" in content


def test_level_info_by_default(tmp_path, loaded):
    logger = loaded(Log(path=str(tmp_path)))
    assert logger.level == logging.INFO
    assert not logger.isEnabledFor(logging.DEBUG)


def test_level_debug(tmp_path, loaded):
    logger = loaded(Log(path=str(tmp_path), debug=True))
    assert logger.level == logging.DEBUG


def test_reload_replaces_handlers(tmp_path, loaded):
    loaded(Log(path=str(tmp_path)))
    logger = loaded(Log(path=str(tmp_path)))
    assert len(logger.handlers) == 2


def test_unusable_directory_keeps_console_only(tmp_path, loaded):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    logger = loaded(Log(path=str(blocker)))
    assert not any(isinstance(h, logging.FileHandler) for h in logger.handlers)
    assert len(logger.handlers) == 1


def test_rollover_keeps_max_backups(tmp_path, loaded):
    logger = loaded(Log(path=str(tmp_path), max_backups=2))
    handler = _file_handler(logger)
    for index in range(5):
        logger.info("line %d", index)
        handler.doRollover()
    backups = list(tmp_path.glob("distribyted-*.log"))
    assert len(backups) == 2
    assert (tmp_path / FILE_NAME).exists()


def test_rollover_removes_old_backups(tmp_path, loaded):
    logger = loaded(Log(path=str(tmp_path), max_age=1))
    old = tmp_path / "distribyted-2000-01-01T00-00-00.000.log"
    old.write_text("old")
    past = time.time() - 10 * 24 * 3600
    os.utime(old, (past, past))

    handler = _file_handler(logger)
    logger.info("fresh")
    handler.doRollover()

    assert not old.exists()
    assert len(list(tmp_path.glob("distribyted-*.log"))) == 1