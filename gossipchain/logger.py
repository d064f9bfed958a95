"""Logfmt-style logging to standard error."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

_LEVELS = ((logging.ERROR, "error"), (logging.WARNING, "warn"), (logging.INFO, "info"))


def _encode(value: Any) -> str:
    text = str(value)
    if any(ch <= " " or ch in '="' for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


class LogfmtFormatter(logging.Formatter):
    """Formats records as ``ts=... caller=... level=... msg=...`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        level = next((name for no, name in _LEVELS if record.levelno >= no), "debug")
        pairs = [
            ("ts", stamp.strftime("%Y-%m-%dT%H:%M:%S.%fZ")),
            ("caller", f"{record.filename}:{record.lineno}"),
            ("level", level),
            ("msg", record.getMessage()),
        ]
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            pairs.extend((str(key), value) for key, value in fields.items())
        if record.exc_info:
            pairs.append(("exc", self.formatException(record.exc_info)))
        return " ".join(f"{key}={_encode(value)}" for key, value in pairs)


def get_logger(name: str = "gossipchain") -> logging.Logger:
    """Return a logger that writes logfmt lines to standard error."""
    log = logging.getLogger(name)
    if not any(isinstance(h.formatter, LogfmtFormatter) for h in log.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(LogfmtFormatter())
        log.addHandler(handler)
        log.setLevel(logging.DEBUG)
        log.propagate = False
    return log