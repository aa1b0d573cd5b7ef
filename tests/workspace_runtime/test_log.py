"""Tests for the loguru setup and the stdlib bridge."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from codeyard.workspace_runtime.log import QUIET_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    yield
    logger.remove()
    logging.basicConfig(handlers=[], force=True)


def test_file_sink_receives_loguru_and_stdlib_records(tmp_path: Path) -> None:
    log_file = tmp_path / "codeyard.log"
    setup_logging("debug", log_file=str(log_file))

    logger.info("Saved index.html for 'acme'")
    logging.getLogger("uvicorn.error").warning("Worker restarted")
    logger.complete()

    text = log_file.read_text()
    assert "Logging initialised (level=DEBUG" in text
    assert "Saved index.html for 'acme'" in text
    assert "Worker restarted" in text
    assert "\x1b[" not in text


def test_quiet_loggers_are_capped(tmp_path: Path) -> None:
    log_file = tmp_path / "codeyard.log"
    setup_logging("DEBUG", log_file=str(log_file))

    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
    logging.getLogger("git.cmd").info("Popen(['git', 'status'])")
    logger.complete()

    assert "Popen" not in log_file.read_text()


def test_tracebacks_do_not_show_local_values(tmp_path: Path) -> None:
    log_file = tmp_path / "codeyard.log"
    setup_logging("INFO", log_file=str(log_file))

    def set_password(password: str) -> None:
        raise RuntimeError("chpasswd failed")

    secret = "-".join(("hunter2", "secret"))
    try:
        set_password(secret)
    except RuntimeError:
        logger.exception("Password rotation failed")
    logger.complete()

    text = log_file.read_text()
    assert "chpasswd failed" in text
    assert "hunter2-secret" not in text
