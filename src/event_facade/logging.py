"""JSON structured logging for event_facade.

The library itself only emits DEBUG records (enablement decisions, unparseable
timestamps, unknown message types). Applications opt in with
``setup_logging(Config.from_env())``; FACADE_LOG_FORMAT picks "json" (default)
or "text".
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from .config import Config

EXTRA_PREFIX = "facade_"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def __init__(self, extra_prefix: str = EXTRA_PREFIX) -> None:
        super().__init__()
        self.extra_prefix = extra_prefix

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
        }

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = "".join(traceback.format_exception(*record.exc_info))

        # facade_integration, facade_source, facade_message_type, ...
        for key, value in record.__dict__.items():
            if key.startswith(self.extra_prefix):
                entry[key] = value

        return json.dumps(entry, default=str)


def setup_logging(
    config: Config,
    *,
    logger_name: str = "event_facade",
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach a single JSON or plaintext handler to ``logger_name``."""
    target = logging.getLogger(logger_name)
    target.setLevel(config.log_level_number)

    for handler in target.handlers[:]:
        target.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(config.log_level_number)
    if config.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    target.addHandler(handler)
    return target
