"""Logging helpers for pocketsync."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys
from typing import Any, Dict, Optional, Union

LOG_SUBPATH = Path("logs") / "pocketsync.log"
STRUCTURED_LOG_SUBPATH = Path("logs") / "pocketsync.jsonl"
MAX_BYTES = 5 * 1024 * 1024  # 5 MB per log segment
BACKUP_COUNT = 3
REPO_ROOT = Path(__file__).resolve().parent.parent
FALLBACK_ROOT = REPO_ROOT / ".pocketsync_runtime"


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra") and record.extra:
            log_entry["extra"] = record.extra
        return json.dumps(log_entry)


def setup_logging(
    data_dir: Path,
    level: Union[str, int] = logging.WARNING,
    structured: bool = True,
) -> Path:
    """Configure the ``pocketsync`` logger tree.

    Args:
        data_dir: Directory under which ``logs/`` is created.
        level: Logging level (string name or int constant).
        structured: Whether to add a JSON-lines handler next to the text log.

    Returns:
        Path to the primary (text) log file.
    """
    log_path = _resolve_path(data_dir, LOG_SUBPATH)

    text_formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(text_formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(text_formatter)

    logger = logging.getLogger("pocketsync")
    _reset_handlers(logger)
    logger.setLevel(_resolve_level(level))
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    if structured:
        json_handler = RotatingFileHandler(
            _resolve_path(data_dir, STRUCTURED_LOG_SUBPATH),
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        json_handler.setFormatter(JSONFormatter())
        logger.addHandler(json_handler)

    logger.propagate = False
    return log_path


def setup_logging_from_config(data_dir: Path, logging_config: Optional[Dict[str, Any]]) -> Path:
    """Apply the ``logging`` section of a configuration bundle."""
    raw = logging_config or {}
    return setup_logging(
        data_dir,
        level=raw.get("level", "INFO"),
        structured=bool(raw.get("structured", True)),
    )


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return int(level)


def _resolve_path(data_dir: Path, subpath: Path) -> Path:
    primary = data_dir / subpath
    try:
        primary.parent.mkdir(parents=True, exist_ok=True)
        return primary
    except PermissionError:
        fallback = FALLBACK_ROOT / subpath
        fallback.parent.mkdir(parents=True, exist_ok=True)
        print(
            f"[config] Unable to write logs under '{data_dir}'; "
            f"falling back to '{fallback.parent}'.",
            file=sys.stderr,
        )
        return fallback


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


__all__ = [
    "setup_logging",
    "setup_logging_from_config",
    "JSONFormatter",
    "LOG_SUBPATH",
    "STRUCTURED_LOG_SUBPATH",
    "FALLBACK_ROOT",
]
