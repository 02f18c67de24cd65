"""Bounded, line-by-line reader for log files of arbitrary size."""
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from loglat.monitoring.logger import logger

DEFAULT_MAX_LINE_LENGTH = 1000 * 1000


class LineTooLongError(Exception):
    """Raised when a line exceeds the configured maximum length."""


class LineScanner:
    """Yields the lines of a file, stripped of their terminators.

    Opening happens on ``__enter__`` and an unreadable file raises ``OSError``
    there. Errors after that point end the scan early: they are logged and
    kept on ``error`` so partial results can still be reported.
    """

    def __init__(
        self,
        path: Union[str, Path],
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
    ) -> None:
        if max_line_length <= 0:
            raise ValueError("max_line_length must be positive")
        self.path = Path(path)
        self.max_line_length = max_line_length
        self.error: Optional[str] = None
        self._handle: Optional[BinaryIO] = None

    def __enter__(self) -> "LineScanner":
        self._handle = open(self.path, "rb")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        return False

    def __iter__(self) -> Iterator[str]:
        if self._handle is None:
            raise RuntimeError("LineScanner must be entered before iterating")
        handle = self._handle
        limit = self.max_line_length
        try:
            while True:
                # Two extra bytes leave room for a CRLF terminator.
                raw = handle.readline(limit + 2)
                if not raw:
                    return
                if raw.endswith(b"\n"):
                    raw = raw[:-1]
                    if raw.endswith(b"\r"):
                        raw = raw[:-1]
                if len(raw) > limit:
                    raise LineTooLongError(f"line exceeds {limit} bytes")
                yield raw.decode("utf-8", errors="replace")
        except (OSError, ValueError, LineTooLongError) as exc:
            # ValueError covers reads on a handle closed underneath us.
            self.error = str(exc)
            logger.error(
                "error reading file, scan ended early",
                extra={"ctx_file": str(self.path), "ctx_error": self.error},
            )


__all__ = ["LineScanner", "LineTooLongError", "DEFAULT_MAX_LINE_LENGTH"]
