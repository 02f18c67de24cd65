"""Latency analyzer orchestrating the scan, aggregation and reporting."""
from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from loglat.core.extraction import (
    Extractor,
    LastFieldExtractor,
    ReadingCallback,
    consume_matches,
)
from loglat.core.filtering import LineMatch, produce_matches
from loglat.core.percentiles import compute_percentiles
from loglat.core.reporter import AnalysisReport
from loglat.core.scanner import LineScanner
from loglat.monitoring.logger import logger
from loglat.monitoring.metrics import MetricsCollector
from loglat.services.publisher import LatencyReading, ReadingPublisher
from loglat.utils.config import AppSettings


class LatencyAnalyzer:
    """Runs the two-stage scan pipeline over a single log file.

    The filter stage and the extraction stage run as two tasks joined by a
    bounded queue. Only the extraction task touches the aggregate. When a
    publisher and a region id are given, every parsed reading is also handed
    to the publisher.
    """

    def __init__(
        self,
        settings: AppSettings,
        metrics: MetricsCollector,
        extractor: Optional[Extractor] = None,
        publisher: Optional[ReadingPublisher] = None,
        region_id: Optional[str] = None,
    ) -> None:
        if publisher is not None and region_id is None:
            raise ValueError("a region id is required when publishing readings")
        if settings.queue_size <= 0:
            raise ValueError("queue_size must be positive")
        self.settings = settings
        self.metrics = metrics
        self.extractor = extractor or LastFieldExtractor()
        self.publisher = publisher
        self.region_id = region_id

    async def run(
        self,
        path: Union[str, Path],
        verbs: Sequence[str],
        ranks: Optional[Iterable[int]] = None,
    ) -> AnalysisReport:
        """Scan ``path`` and compute statistics for lines matching ``verbs``.

        Raises ``OSError`` if the file cannot be opened.
        """
        ranks = tuple(self.settings.percentiles if ranks is None else ranks)
        logger.info(
            "scanning log file",
            extra={
                "ctx_file": str(path),
                "ctx_verbs": list(verbs),
                "ctx_region_id": self.region_id,
                "ctx_extractor": repr(self.extractor),
            },
        )
        on_reading: Optional[ReadingCallback] = None
        if self.publisher is not None and self.region_id is not None:
            on_reading = self._reading_sink(self.publisher, self.region_id)
        start = time.monotonic()
        if self.publisher is not None:
            self.publisher.start()
        try:
            scanner = LineScanner(path, max_line_length=self.settings.max_line_length)
            with scanner:
                queue: "asyncio.Queue[Optional[LineMatch]]" = asyncio.Queue(
                    maxsize=self.settings.queue_size
                )
                producer = asyncio.create_task(produce_matches(scanner, verbs, queue, self.metrics))
                try:
                    aggregate = await consume_matches(
                        queue,
                        self.extractor,
                        self.metrics,
                        on_reading=on_reading,
                    )
                except BaseException:
                    producer.cancel()
                    raise
                await producer
        finally:
            if self.publisher is not None:
                await self.publisher.stop()

        result = compute_percentiles(aggregate, ranks)
        logger.info(
            "scan completed",
            extra={
                "ctx_file": str(path),
                "ctx_count": result.count,
                "ctx_elapsed_ms": int((time.monotonic() - start) * 1000),
                "ctx_counters": self.metrics.snapshot(),
            },
        )
        return AnalysisReport(
            source=str(path),
            verbs=tuple(verbs),
            result=result,
            counts=dict(aggregate.counts),
            counters=self.metrics.snapshot(),
            scan_error=scanner.error,
        )

    def analyze(
        self,
        path: Union[str, Path],
        verbs: Sequence[str],
        ranks: Optional[Iterable[int]] = None,
    ) -> AnalysisReport:
        """Synchronous entry point wrapping :meth:`run`."""
        return asyncio.run(self.run(path, verbs, ranks))

    def _reading_sink(self, publisher: ReadingPublisher, region_id: str) -> ReadingCallback:
        date_index = self.settings.date_field_index
        time_index = self.settings.time_field_index

        async def submit(match: LineMatch, fields: Sequence[str], value: float) -> None:
            if max(date_index, time_index) >= len(fields):
                logger.warning(
                    "line has no date/time fields, reading not published",
                    extra={"ctx_line": match.line, "ctx_verb": match.verb},
                )
                return
            reading = LatencyReading(
                latency=value,
                verb=match.verb.replace("/", "_"),
                date_time=f"{fields[date_index]}T{fields[time_index]}",
                region_id=region_id,
            )
            await publisher.submit(reading)

        return submit


__all__ = ["LatencyAnalyzer"]
