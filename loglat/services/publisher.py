"""
Fire-and-forget publishing of latency readings to an indexing service.
Readings are queued by the analyzer and posted by a background worker, so a
slow or failing endpoint never stalls log analysis.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from loglat.monitoring.logger import logger
from loglat.monitoring.metrics import (
    PUBLISH_FAILURES,
    READINGS_DROPPED,
    READINGS_PUBLISHED,
    MetricsCollector,
)
from loglat.services.circuit_breaker import CircuitBreaker, CircuitBreakerOpen


@dataclass(frozen=True)
class LatencyReading:
    latency: float
    verb: str
    date_time: str
    region_id: str

    def to_document(self) -> Dict[str, Any]:
        return {
            "Latency": self.latency,
            "Verb": self.verb,
            "DateTimeStr": self.date_time,
            "RegionID": self.region_id,
        }


class IndexingError(Exception):
    """Raised when the indexing service answers with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"indexing service returned {status_code}")
        self.status_code = status_code


class ReadingPublisher:
    """Posts readings to ``index_url`` from a bounded background queue.

    Failures are logged and counted, never raised to the caller. Readings
    that still do not fit in the queue after a bounded wait, or arrive while
    the circuit is open, are dropped.
    """

    def __init__(
        self,
        index_url: str,
        metrics: MetricsCollector,
        timeout_seconds: float = 2.0,
        max_queue_size: int = 1024,
        max_batch_size: int = 32,
        submit_timeout_seconds: float = 2.0,
        breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if max_queue_size <= 0:
            raise ValueError("max_queue_size must be positive")
        self.index_url = index_url
        self.metrics = metrics
        self.timeout_seconds = timeout_seconds
        self.max_queue_size = max_queue_size
        self.max_batch_size = max_batch_size
        self.submit_timeout_seconds = submit_timeout_seconds
        self.breaker = breaker or CircuitBreaker(
            name="index",
            expected_exception_types=(httpx.HTTPError, IndexingError),
        )
        self._transport = transport
        self._queue: Optional["asyncio.Queue[LatencyReading]"] = None
        self._client: Optional[httpx.AsyncClient] = None
        self._worker_task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Create the HTTP client and start the worker on the running loop."""
        if self._worker_task is not None:
            return
        self._queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._client = httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)
        self._worker_task = asyncio.create_task(self._worker_loop(self._queue, self._client))
        logger.info("ReadingPublisher started", extra={"ctx_index_url": self.index_url})

    async def stop(self) -> None:
        """Flush queued readings, then stop the worker and close the client."""
        if self._worker_task is None or self._queue is None:
            return
        await self._queue.join()
        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        if self._client is not None:
            await self._client.aclose()
        self._worker_task = None
        self._client = None
        logger.info("ReadingPublisher stopped", extra={"ctx_published": self.metrics.get(READINGS_PUBLISHED)})

    async def submit(self, reading: LatencyReading) -> bool:
        """Queue a reading. Returns False if it was dropped.

        A full queue is waited on for at most ``submit_timeout_seconds``,
        which lets the worker catch up with a healthy endpoint while a stuck
        one only costs a bounded delay per reading.
        """
        if self._queue is None:
            raise RuntimeError("ReadingPublisher.submit called before start()")
        try:
            self._queue.put_nowait(reading)
            return True
        except asyncio.QueueFull:
            pass
        if self.submit_timeout_seconds > 0:
            try:
                await asyncio.wait_for(self._queue.put(reading), timeout=self.submit_timeout_seconds)
                return True
            except asyncio.TimeoutError:
                pass
        self.metrics.increment(READINGS_DROPPED)
        logger.warning(
            "publish queue full, dropping reading",
            extra={"ctx_verb": reading.verb, "ctx_latency": reading.latency},
        )
        return False

    async def _worker_loop(
        self, queue: "asyncio.Queue[LatencyReading]", client: httpx.AsyncClient
    ) -> None:
        while True:
            batch: List[LatencyReading] = [await queue.get()]
            while len(batch) < self.max_batch_size:
                try:
                    batch.append(queue.get_nowait())
                except asyncio.QueueEmpty:
                    break
            try:
                results = await asyncio.gather(
                    *(self._publish(client, reading) for reading in batch), return_exceptions=True
                )
                for result in results:
                    if isinstance(result, Exception):
                        self.metrics.increment(PUBLISH_FAILURES)
                        logger.error(f"Unexpected error in publish loop: {result!r}")
            finally:
                for _ in batch:
                    queue.task_done()

    async def _publish(self, client: httpx.AsyncClient, reading: LatencyReading) -> None:
        try:
            with self.breaker:
                response = await client.post(self.index_url, json=reading.to_document())
                if not response.is_success:
                    raise IndexingError(response.status_code)
        except CircuitBreakerOpen:
            self.metrics.increment(READINGS_DROPPED)
            logger.debug("circuit open, dropping reading", extra={"ctx_verb": reading.verb})
        except IndexingError as exc:
            self.metrics.increment(PUBLISH_FAILURES)
            logger.warning(
                "indexing service rejected reading",
                extra={"ctx_status": exc.status_code, "ctx_reading": reading.to_document()},
            )
        except httpx.HTTPError as exc:
            self.metrics.increment(PUBLISH_FAILURES)
            logger.warning(
                "failed to publish reading",
                extra={"ctx_error": repr(exc), "ctx_reading": reading.to_document()},
            )
        else:
            self.metrics.increment(READINGS_PUBLISHED)


__all__ = ["LatencyReading", "IndexingError", "ReadingPublisher"]
