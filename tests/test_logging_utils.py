"""Tests for logging utilities."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pocketsync import logging_utils


def _reset_logger() -> logging.Logger:
    logger = logging.getLogger("pocketsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    return logger


def test_setup_logging_creates_rotating_files(tmp_path: Path):
    logger = _reset_logger()
    log_path = logging_utils.setup_logging(tmp_path, level="INFO")

    assert log_path == tmp_path / "logs" / "pocketsync.log"
    assert log_path.exists()

    file_handlers = [
        handler for handler in logger.handlers if isinstance(handler, RotatingFileHandler)
    ]
    assert [h.baseFilename for h in file_handlers] == [
        str(log_path),
        str(tmp_path / "logs" / "pocketsync.jsonl"),
    ]
    _reset_logger()


def test_setup_logging_is_idempotent(tmp_path: Path):
    logger = _reset_logger()
    logging_utils.setup_logging(tmp_path, level="INFO")
    handler_count = len(logger.handlers)

    logging_utils.setup_logging(tmp_path, level="INFO")
    assert len(logger.handlers) == handler_count
    _reset_logger()


def test_structured_log_lines_are_json(tmp_path: Path):
    _reset_logger()
    logging_utils.setup_logging_from_config(tmp_path, {"level": "DEBUG", "structured": True})

    logging.getLogger("pocketsync.sync.engine").info("pass done")
    for handler in logging.getLogger("pocketsync").handlers:
        handler.flush()

    lines = (tmp_path / "logs" / "pocketsync.jsonl").read_text(encoding="utf-8").splitlines()
    entry = json.loads(lines[-1])
    assert entry["logger"] == "pocketsync.sync.engine"
    assert entry["message"] == "pass done"
    assert entry["level"] == "INFO"
    _reset_logger()


def test_setup_logging_falls_back_when_permission_denied(tmp_path: Path, monkeypatch):
    _reset_logger()
    data_dir = tmp_path / "home"
    primary_parent = data_dir / "logs"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):
        if str(self).startswith(str(primary_parent)):
            raise PermissionError
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    fallback_root = tmp_path / "fallback"
    monkeypatch.setattr(logging_utils, "FALLBACK_ROOT", fallback_root)

    log_path = logging_utils.setup_logging(data_dir, level="INFO", structured=False)
    expected = fallback_root / "logs" / "pocketsync.log"

    assert log_path == expected
    assert expected.exists()
    _reset_logger()
