"""Structured logging helpers for Split Bills."""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

CONSOLE_FORMAT: Final[str] = "[%(levelname)s] %(name)s: %(message)s"
DEFAULT_LEVEL: Final[str] = "INFO"
LOG_DIR_ENV_FLAG: Final[str] = "SPLITBILLS_LOG_DIR"
JSON_ENV_FLAG: Final[str] = "SPLITBILLS_JSON_LOGS"
LEVEL_ENV_FLAG: Final[str] = "SPLITBILLS_LOG_LEVEL"
LOG_FILENAME: Final[str] = "splitbills.log"

_REQUEST_FIELDS: Final[tuple[str, ...]] = ("method", "path", "status_code", "duration_ms")


class JsonLineFormatter(logging.Formatter):
    """Render log records as single-line JSON payloads."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        payload: dict[str, object] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "source": record.name,
            "message": record.getMessage(),
        }
        for field in _REQUEST_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def log_path() -> Path:
    """Location of the JSON log file, honouring ``SPLITBILLS_LOG_DIR``."""

    root = Path(os.environ.get(LOG_DIR_ENV_FLAG, Path("artifacts") / "logs"))
    return root / LOG_FILENAME


def _resolve_level(level: str | int | None) -> int:
    """Pick the level from the environment, then the argument, then the default."""

    env_level = os.environ.get(LEVEL_ENV_FLAG)
    if env_level:
        candidate = env_level.strip().upper()
    elif isinstance(level, str):
        candidate = level.strip().upper()
    elif isinstance(level, int):
        return int(level)
    else:
        candidate = DEFAULT_LEVEL
    resolved = logging.getLevelName(candidate)
    return int(resolved) if isinstance(resolved, int) else logging.INFO


def _json_logging_enabled(explicit: bool) -> bool:
    if explicit:
        return True
    value = os.environ.get(JSON_ENV_FLAG)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _ensure_console_handler(logger: logging.Logger, level: int) -> None:
    for handler in logger.handlers:
        if getattr(handler, "_splitbills_console", False):
            handler.setLevel(level)
            return
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    stream_handler._splitbills_console = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)


def _ensure_json_handler(logger: logging.Logger, level: int) -> None:
    for handler in logger.handlers:
        if getattr(handler, "_splitbills_json", False):
            handler.setLevel(level)
            return
    path = log_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    json_handler = logging.FileHandler(path, encoding="utf-8")
    json_handler.setLevel(level)
    json_handler.setFormatter(JsonLineFormatter())
    json_handler._splitbills_json = True  # type: ignore[attr-defined]
    logger.addHandler(json_handler)


def setup_logger(
    name: str,
    json_format: bool = False,
    level: str | int | None = None,
) -> logging.Logger:
    """Configure and return a logger with the Split Bills handlers attached.

    Handlers are added once per logger, so repeated calls only adjust levels.
    Records still propagate to the root logger so ``caplog`` can capture them.
    """

    resolved_level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(resolved_level)
    logger.propagate = True
    _ensure_console_handler(logger, resolved_level)
    if _json_logging_enabled(json_format):
        _ensure_json_handler(logger, resolved_level)
    return logger


def configure_cli_logging(json_logs: bool, level: str | int | None = None) -> logging.Logger:
    """Configure the ``splitbills`` package logger for a command line run.

    Module loggers are plain ``logging.getLogger(__name__)`` children and
    inherit the handlers installed here.
    """

    if json_logs:
        os.environ[JSON_ENV_FLAG] = "1"
    else:
        os.environ.pop(JSON_ENV_FLAG, None)
    return setup_logger("splitbills", json_format=json_logs, level=level)


__all__ = ["JsonLineFormatter", "configure_cli_logging", "log_path", "setup_logger"]
