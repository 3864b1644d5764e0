"""Logging setup for the loreguard CLI and embedding applications."""

from __future__ import annotations

import json
import logging
import sys

from loreguard.core.config import LoggingConfig

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, message (+ exc)."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Attach a single stderr handler to the ``loreguard`` logger.

    Safe to call repeatedly; the previous handler is replaced.
    """
    config = config or LoggingConfig()
    root = logging.getLogger("loreguard")
    root.setLevel(config.level)

    for handler in list(root.handlers):
        if getattr(handler, "_loreguard", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler._loreguard = True  # type: ignore[attr-defined]
    if config.format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    root.addHandler(handler)
    return root
