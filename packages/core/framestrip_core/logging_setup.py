"""Structured local logging and crash hook setup.

All records go through the ``framestrip`` logger tree. The renderer package
logs under ``framestrip.renderer.*`` without importing this module, so
configuring here is enough to capture icon and compositor failures.
"""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import os
import platform
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any


_LOGGER_NAME = "framestrip"
_LOG_FILE = "framestrip.log"
_FAULT_FILE = "fault.log"
_EXTRA_FIELDS = ("event", "crash_id")

# Directory chosen by configure_logging; crash output lands beside the log.
_active_dir: Path | None = None
_fault_stream: IO[str] | None = None


def _config_root() -> Path:
    if platform.system() == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "FrameStrip"
    if platform.system() == "Darwin":
        return Path.home() / "Library" / "Application Support" / "FrameStrip"
    return Path.home() / ".config" / "framestrip"


def log_dir() -> Path:
    """Directory in use: the configured one, else the per-platform default."""
    path = _active_dir or (_config_root() / "logs")
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(
    keep_files: int = 7,
    console: bool = True,
    level: int = logging.INFO,
    directory: Path | None = None,
) -> logging.Logger:
    global _active_dir

    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    if directory is not None:
        _active_dir = Path(directory)
    logger.setLevel(level)

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_dir() / _LOG_FILE),
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s %(message)s"))
        logger.addHandler(stream_handler)

    logger.info("logging configured dir=%s", log_dir(), extra={"event": "logging_configured"})
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    if name:
        return logging.getLogger(f"{_LOGGER_NAME}.{name}")
    return logging.getLogger(_LOGGER_NAME)


def _enable_fault_handler(logger: logging.Logger) -> Path:
    global _fault_stream

    path = log_dir() / _FAULT_FILE
    if _fault_stream is not None:
        faulthandler.disable()
        _fault_stream.close()
    _fault_stream = path.open("a", encoding="utf-8")
    faulthandler.enable(file=_fault_stream, all_threads=True)
    logger.info("fault handler enabled path=%s", path, extra={"event": "fault_handler_enabled"})
    return path


def install_crash_hooks() -> Path:
    """Route uncaught exceptions to the log; returns the fault log path."""
    logger = get_logger()

    def _report(kind: str, exc_info) -> None:
        crash_id = str(uuid.uuid4())
        logger.critical(
            f"{kind} exception crash_id={crash_id}",
            exc_info=exc_info,
            extra={"event": f"{kind}_exception", "crash_id": crash_id},
        )

    def _thread_hook(args: threading.ExceptHookArgs) -> None:
        _report("thread", (args.exc_type, args.exc_value, args.exc_traceback))

    sys.excepthook = lambda *exc_info: _report("uncaught", exc_info)
    threading.excepthook = _thread_hook
    return _enable_fault_handler(logger)


def shutdown_logging() -> None:
    """Detach handlers, restore default hooks and release the fault log."""
    global _active_dir, _fault_stream

    if _fault_stream is not None:
        faulthandler.disable()
        _fault_stream.close()
        _fault_stream = None
    sys.excepthook = sys.__excepthook__
    threading.excepthook = threading.__excepthook__

    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    _active_dir = None
