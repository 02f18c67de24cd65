"""Filter stage: selects log lines by verb and feeds the match queue."""
import asyncio
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from loglat.monitoring.metrics import LINES_SCANNED, MATCHES, MetricsCollector


@dataclass(frozen=True)
class LineMatch:
    line: str
    verb: str


def match_line(line: str, verbs: Sequence[str]) -> List[LineMatch]:
    """Return one match per verb contained in ``line``, in verb order."""

    return [LineMatch(line=line, verb=verb) for verb in verbs if verb in line]


async def produce_matches(
    lines: Iterable[str],
    verbs: Sequence[str],
    queue: "asyncio.Queue[Optional[LineMatch]]",
    metrics: Optional[MetricsCollector] = None,
) -> None:
    """Push every match onto ``queue``, then close it with ``None``.

    ``queue.put`` suspends while the queue is full, which throttles scanning
    to the consumer's pace.
    """
    try:
        for line in lines:
            if metrics is not None:
                metrics.increment(LINES_SCANNED)
            for match in match_line(line, verbs):
                if metrics is not None:
                    metrics.increment(MATCHES)
                await queue.put(match)
    finally:
        await queue.put(None)


__all__ = ["LineMatch", "match_line", "produce_matches"]
