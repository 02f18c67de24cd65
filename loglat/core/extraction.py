"""Extraction & aggregation stage.

Extraction policies pick the latency token out of a line's whitespace
fields. The consumer coroutine drains the match queue, parses each token and
folds the value into an :class:`Aggregate` that only it ever touches.
"""
from __future__ import annotations

import asyncio
import math
import re
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from loglat.core.aggregate import Aggregate, to_float32
from loglat.core.filtering import LineMatch
from loglat.monitoring.logger import logger
from loglat.monitoring.metrics import PARSE_FAILURES, MetricsCollector

ReadingCallback = Callable[[LineMatch, Sequence[str], float], Awaitable[None]]


class Extractor(ABC):
    """Strategy for locating the latency token in a line."""

    @abstractmethod
    def token(self, fields: Sequence[str]) -> Optional[str]:
        """Return the latency token, or ``None`` when the line has none."""


class LastFieldExtractor(Extractor):
    def token(self, fields: Sequence[str]) -> Optional[str]:
        return fields[-1] if fields else None

    def __repr__(self) -> str:
        return "LastFieldExtractor()"


class FieldIndexExtractor(Extractor):
    """Reads a fixed, zero-based field, for logs with positional columns."""

    def __init__(self, index: int) -> None:
        self.index = index

    def token(self, fields: Sequence[str]) -> Optional[str]:
        try:
            return fields[self.index]
        except IndexError:
            return None

    def __repr__(self) -> str:
        return f"FieldIndexExtractor({self.index})"


def build_extractor(field_index: Optional[int] = None) -> Extractor:
    if field_index is None:
        return LastFieldExtractor()
    return FieldIndexExtractor(field_index)


_DECIMAL_FLOAT = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def parse_latency(token: str) -> float:
    """Parse an ASCII base-10 token as a finite single-precision float.

    Raises ``ValueError`` for anything else, including digit separators,
    non-ASCII digits, hex literals and inf/nan spellings.
    """
    if not _DECIMAL_FLOAT.fullmatch(token):
        raise ValueError(f"not a decimal number: {token!r}")
    try:
        value = to_float32(float(token))
    except OverflowError as exc:
        raise ValueError(f"value out of float32 range: {token!r}") from exc
    if not math.isfinite(value):
        raise ValueError(f"non-finite latency: {token!r}")
    return value


def extract_reading(
    match: LineMatch,
    extractor: Extractor,
    aggregate: Aggregate,
    metrics: Optional[MetricsCollector] = None,
) -> Optional[Tuple[List[str], float]]:
    """Fold one match into ``aggregate``.

    Returns the line's fields and the parsed value, or ``None`` when the
    match was skipped.
    """
    fields: List[str] = match.line.split()
    token = extractor.token(fields)
    try:
        if token is None:
            raise ValueError("no latency field")
        value = parse_latency(token)
    except ValueError as exc:
        if metrics is not None:
            metrics.increment(PARSE_FAILURES)
        logger.warning(
            "no float in matched line",
            extra={
                "ctx_token": token,
                "ctx_line": match.line,
                "ctx_verb": match.verb,
                "ctx_error": str(exc),
            },
        )
        return None

    aggregate.add(match.verb, value)
    return fields, value


async def consume_matches(
    queue: "asyncio.Queue[Optional[LineMatch]]",
    extractor: Extractor,
    metrics: Optional[MetricsCollector] = None,
    on_reading: Optional[ReadingCallback] = None,
) -> Aggregate:
    """Drain ``queue`` until the producer closes it with ``None``.

    ``on_reading`` is awaited after every parsed value, so a callback that
    waits on a full downstream queue lets other tasks run.
    """
    aggregate = Aggregate()
    while True:
        match = await queue.get()
        if match is None:
            break
        parsed = extract_reading(match, extractor, aggregate, metrics)
        if parsed is not None and on_reading is not None:
            fields, value = parsed
            await on_reading(match, fields, value)
    aggregate.freeze()
    return aggregate


__all__ = [
    "Extractor",
    "LastFieldExtractor",
    "FieldIndexExtractor",
    "build_extractor",
    "parse_latency",
    "extract_reading",
    "consume_matches",
]
