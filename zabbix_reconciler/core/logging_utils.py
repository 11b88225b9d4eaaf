"""
Logging for zabbix-reconciler.

A run logs to stderr (INFO and up) and, for commands that talk to the API,
to one file per run under ``ZBX_LOG_DIR``. Records emitted while handling a
declared resource carry its kind and name: the driver logs through
:func:`resource_logger`, and both handlers render ``[kind/name]`` after the
logger name.

Environment (a ``.env`` file is honoured):
    ZBX_LOG_DIR         directory for run logs (default ``./logs``)
    ZBX_LOG_LEVEL       root threshold, and the file threshold fallback
    ZBX_LOG_FILE_LEVEL  file handler threshold (default DEBUG)
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, MutableMapping, Optional, Tuple

from dotenv import find_dotenv, load_dotenv

CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s%(resource)s - %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s%(resource)s [%(filename)s:%(lineno)d] - %(message)s"


def _level(name: Optional[str], default: int) -> int:
    if not name:
        return default
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default


@dataclass(frozen=True)
class LogSettings:
    """Where a run logs, and how verbosely."""
    directory: Path
    root_level: int = logging.DEBUG
    file_level: int = logging.DEBUG
    console_level: int = logging.INFO

    @classmethod
    def from_env(cls, level: Optional[str] = None) -> "LogSettings":
        env_path = find_dotenv(usecwd=True)
        if env_path:
            load_dotenv(env_path, override=True)
        fallback = _level(os.getenv("ZBX_LOG_LEVEL"), logging.DEBUG)
        return cls(
            directory=Path(os.getenv("ZBX_LOG_DIR") or "./logs"),
            root_level=_level(level, fallback),
            file_level=_level(os.getenv("ZBX_LOG_FILE_LEVEL"), fallback),
        )

    def logfile(self, run: str, action: str, now: Optional[datetime] = None) -> Path:
        """``<run>-<action>-YYYY-MM-HH.log``: one file per command and hour."""
        stamp = (now or datetime.now()).strftime("%Y-%m-%H")
        return self.directory / f"{run}-{action}-{stamp}.log"


class _ResourceField(logging.Filter):
    """Fill ``%(resource)s``; empty for records not tied to a resource."""

    def filter(self, record: logging.LogRecord) -> bool:
        kind = getattr(record, "resource_kind", None)
        name = getattr(record, "resource_name", None)
        record.resource = f" [{kind}/{name}]" if kind else ""
        return True


class ResourceLogger(logging.LoggerAdapter):
    """Adapter tagging every record with one declared resource."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("resource_kind", self.extra["kind"])
        extra.setdefault("resource_name", self.extra["name"])
        kwargs["extra"] = extra
        return msg, kwargs


def resource_logger(logger: logging.Logger, kind: str, name: str) -> ResourceLogger:
    return ResourceLogger(logger, {"kind": kind, "name": name})


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(_ResourceField())
    return handler


def setup_logging(
    level: Optional[str] = None,
    *,
    run: Optional[str] = None,
    action: Optional[str] = None,
) -> Optional[Path]:
    """Replace the root handlers with the console (and file) handler.

    Safe to call again: previous handlers are closed, never duplicated.

    Args:
        level: Root threshold; defaults to ``ZBX_LOG_LEVEL`` then DEBUG.
        run: Run label used in the log file name.
        action: CLI command used in the log file name. The file handler is
            only installed when both ``run`` and ``action`` are given.

    Returns:
        The log file path, or ``None`` for console-only logging.
    """
    settings = LogSettings.from_env(level)
    logging.captureWarnings(True)

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    handlers = [_handler(logging.StreamHandler(), settings.console_level, CONSOLE_FORMAT)]
    logfile: Optional[Path] = None
    if run and action:
        logfile = settings.logfile(run, action)
        logfile.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_handler(logging.FileHandler(logfile, encoding="utf-8"), settings.file_level, FILE_FORMAT))

    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min([settings.root_level] + [h.level for h in handlers]))
    return logfile


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "zabbix_reconciler")
