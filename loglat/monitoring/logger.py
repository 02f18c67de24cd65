"""Logging setup for analyzer runs.

Log records go to stderr so the summary on stdout stays machine readable.
Call sites attach context through ``extra={"ctx_<name>": value}``; both
formatters lift those keys out of the record under ``<name>``.
"""
import json
import logging
from typing import Any, Dict, Optional, TextIO

CONTEXT_PREFIX = "ctx_"
LOG_FORMATS = ("json", "text")


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the ``ctx_*`` extras of ``record`` with the prefix stripped."""

    return {
        key[len(CONTEXT_PREFIX):]: value
        for key, value in vars(record).items()
        if key.startswith(CONTEXT_PREFIX)
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record, tagged with the service name."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service_name,
            "message": record.getMessage(),
        }
        payload.update(record_context(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human-oriented lines: ``time level logger: message key=value ...``."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().format(record)
        context = record_context(record)
        if context:
            line += " " + " ".join(f"{key}={value!r}" for key, value in context.items())
        return line


def configure_logging(
    service_name: str,
    level: str = "INFO",
    fmt: str = "json",
    stream: Optional[TextIO] = None,
) -> None:
    """Route every logger to a single stderr handler in the chosen format."""

    if fmt not in LOG_FORMATS:
        raise ValueError(f"unknown log format {fmt!r}, expected one of {LOG_FORMATS}")
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter(service_name) if fmt == "json" else TextFormatter())
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


logger = logging.getLogger("loglat")

__all__ = [
    "JsonFormatter",
    "TextFormatter",
    "configure_logging",
    "record_context",
    "logger",
]
