"""
Logging setup for Inventory Signals.

``configure_logging(config)`` is called once per CLI command, before any
engine work. Library modules only ever do ``logging.getLogger(__name__)``.

Fields passed with ``extra=`` (the audit sink sends ``product_id``, ``action``,
``new_status`` and ``source``) are kept in both output formats:

  text : ``2025-06-30T12:00:00Z [INFO] inventory_signals.audit: hidden p1 -> DRAFT | product_id=p1 ...``
  json : ``{"ts": "...", "level": "INFO", "logger": "...", "msg": "...", "product_id": "p1"}``

Output goes to stderr so command results on stdout can be piped.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from inventory_signals.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# HTTP client chatter (one line per webhook / GraphQL request).
NOISY_LOGGERS = ("httpx", "httpcore")

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Return the fields that were attached to ``record`` via ``extra=``."""
    return {
        key: val
        for key, val in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class _TextFormatter(logging.Formatter):
    """Plain text lines with ``| key=value`` extras appended."""

    converter = time.gmtime

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if extras:
            line += " | " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


class _JsonFormatter(logging.Formatter):
    """One JSON object per line: ``ts``, ``level``, ``logger``, ``msg`` plus extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(record_extras(record))
        return json.dumps(payload, default=str)


def _build_handlers(config: "LoggingConfig", level: int) -> list[logging.Handler]:
    formatter: logging.Formatter = _JsonFormatter() if config.json_format else _TextFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: "LoggingConfig") -> None:
    """Install stderr (and optional file) handlers on the root logger.

    Replaces any handlers installed by an earlier call.

    Args:
        config: ``AppConfig.logging``.
    """
    level = logging.getLevelName(config.level)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, handlers=_build_handlers(config, level), force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
