# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logging for canarypkg.

A release run emits one JSON object per line, so the log of a 40-unit
build can be grepped by distro or fed to a log pipeline afterwards:

  {"ts": "2026-...", "level": "INFO", "module": "canarypkg.packaging.runner",
   "msg": "Build succeeded", "distro": "ubuntu", "release": "trusty", ...}

Context (distro, release, arch, command) always goes into `extra`, never
into the message string, so the message stays a stable key to search on.

fpm and package_cloud output does not pass through here. The children
inherit the terminal and write to it directly.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Whatever a bare LogRecord carries is bookkeeping; anything beyond it
# arrived through `extra=`.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_PACKAGE = "canarypkg"


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record: ts (UTC, ISO 8601), level, module (the
    logger name) and msg, then every `extra` field. A logged traceback
    lands under "exc". Values json can't encode, like paths, are str()'d.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _resolve_log_level(level_name: str) -> int:
    try:
        return _LEVELS[level_name.upper()]
    except KeyError:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(_LEVELS)}"
        ) from None


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)


def _file_handler(log_file: Path) -> logging.FileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(str(log_file), encoding="utf-8")


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Return the JSON logger for `name`, creating its handlers on first use.

    Modules call this at import time with __name__. Asking again for the
    same name only changes the level; handlers are never stacked.

    Args:
        name: Logger name, normally the caller's __name__.
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        log_file: Also append records to this file.

    Raises:
        ValueError: On an unknown level name.
    """
    level = _resolve_log_level(log_level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    _attach(logger, logging.StreamHandler(stream=sys.stdout), level)
    if log_file is not None:
        _attach(logger, _file_handler(log_file), level)
    logger.propagate = False
    return logger


def configure_package_logging(log_level: str, log_file: Optional[Path] = None) -> None:
    """
    Apply the run's level, and optionally a shared log file, to every canarypkg logger.

    Module loggers exist before the CLI has read --log-level or the config
    file, so they are re-leveled here once both are known. A log file is
    attached at most once per logger.
    """
    level = _resolve_log_level(log_level)
    target = str(log_file.resolve()) if log_file is not None else None

    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if name != _PACKAGE and not name.startswith(_PACKAGE + "."):
            continue
        # PlaceHolders, and loggers get_logger never set up.
        if not isinstance(logger, logging.Logger) or not logger.handlers:
            continue

        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

        if target is None or any(
            isinstance(handler, logging.FileHandler) and handler.baseFilename == target
            for handler in logger.handlers
        ):
            continue
        _attach(logger, _file_handler(Path(target)), level)
