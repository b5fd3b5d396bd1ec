"""Structured logging configuration.

Log lines are JSON objects. Fan-out code logs with ``extra={"operation": ...,
"repo": ...}``; those two keys are lifted to the top level of the line, next to
the name of the asyncio task (``"list_issues:org/repo"``) the record was
emitted from, so one repository's activity can be filtered out of a
concurrent run. Any other ``extra`` keys land under ``context``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

PROVENANCE_KEYS = ("operation", "repo")

_THIRD_PARTY_LOGGERS = ("github", "urllib3")


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON line with repo provenance at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        for key in PROVENANCE_KEYS:
            if key in context:
                line[key] = context.pop(key)

        task_name = getattr(record, "taskName", None)
        if task_name:
            line["task"] = task_name
        if context:
            line["context"] = context
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)

        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging(level: str, stream: TextIO | None = None) -> logging.Handler:
    """Route all logging through one JSON handler and return that handler.

    ``stream`` defaults to stdout. Calling this again replaces the handler.
    """

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    # PyGithub and urllib3 log every request at DEBUG.
    for name in _THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.INFO))
    return handler
