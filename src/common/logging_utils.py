"""
Logging setup shared by the request handlers.

Emits one JSON object per line so records stay parseable in CloudWatch
or any other line-oriented log sink.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, UTC
from typing import Any, Dict, Optional


_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}

_HANDLER_NAME = "sub-store-json"


class JsonLineFormatter(logging.Formatter):
    """Render a record as a single-line JSON object, including `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        out: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            out["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            out[key] = value
        return json.dumps(out, default=str, ensure_ascii=False)


def _resolve_level(level: Optional[str]) -> int:
    # Unknown names (e.g. a typo in the env var) fall back to INFO
    return logging.getLevelNamesMapping().get((level or "").strip().upper(), logging.INFO)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Attach the JSON handler to the root logger once.

    Repeated calls only adjust the level, so warm Lambda invocations do not
    stack handlers.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JsonLineFormatter())
    root.addHandler(handler)


__all__ = ["JsonLineFormatter", "configure_logging"]
