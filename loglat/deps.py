"""Dependency wiring for the CLI and library callers."""
from typing import Optional

from loglat.core.extraction import build_extractor
from loglat.monitoring.metrics import MetricsCollector
from loglat.services.analyzer import LatencyAnalyzer
from loglat.services.publisher import ReadingPublisher
from loglat.utils.config import AppSettings, get_settings


def get_publisher(settings: AppSettings, metrics: MetricsCollector) -> ReadingPublisher:
    return ReadingPublisher(
        index_url=settings.index_url,
        metrics=metrics,
        timeout_seconds=settings.publish_timeout_seconds,
        max_queue_size=settings.publish_queue_size,
        submit_timeout_seconds=settings.publish_submit_timeout_seconds,
    )


def get_analyzer(
    settings: Optional[AppSettings] = None,
    region_id: Optional[str] = None,
    metrics: Optional[MetricsCollector] = None,
) -> LatencyAnalyzer:
    """Build an analyzer. Passing ``region_id`` turns on publishing."""
    settings = settings or get_settings()
    metrics = metrics or MetricsCollector()
    publisher = get_publisher(settings, metrics) if region_id is not None else None
    return LatencyAnalyzer(
        settings=settings,
        metrics=metrics,
        extractor=build_extractor(settings.field_index),
        publisher=publisher,
        region_id=region_id,
    )


__all__ = ["get_analyzer", "get_publisher"]
