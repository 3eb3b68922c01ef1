"""Structured logging configuration.

Uses standard library logging with a JSON formatter. Records about one trigger
share ``job_name``/``queue_item``/``user_id`` fields, which are lifted to the
top level of the JSON object so log pipelines can correlate a trigger's
submission, polls and result without digging into ``extra``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries, plus the two Formatter adds lazily.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

CORRELATION_FIELDS = ("job_name", "queue_item", "user_id")


class JsonFormatter(logging.Formatter):
    """One JSON object per log record.

    Correlation fields sit beside ``message``; any other ``extra=`` field is
    nested under "extra".
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            if key in CORRELATION_FIELDS:
                payload[key] = value
            else:
                extra[key] = value
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # default=str: extras may carry datetimes, enums or sets.
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str) -> None:
    """Send JSON records to stdout at ``level``, replacing existing root handlers."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level.upper())

    # urllib3 logs every connection at DEBUG, including full request lines.
    for noisy in ("urllib3", "requests"):
        logging.getLogger(noisy).setLevel(max(root.level, logging.INFO))
