"""Lightweight in-memory run counters."""
import threading
from collections import defaultdict
from typing import Dict

LINES_SCANNED = "lines_scanned"
MATCHES = "matches"
PARSE_FAILURES = "parse_failures"
READINGS_PUBLISHED = "readings_published"
PUBLISH_FAILURES = "publish_failures"
READINGS_DROPPED = "readings_dropped"


class MetricsCollector:
    """Tracks counters for one analyzer run.

    The publisher worker and the pipeline tasks both report here, so updates
    are serialized with a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.counters: Dict[str, int] = defaultdict(int)

    def increment(self, name: str, value: int = 1) -> None:
        with self._lock:
            self.counters[name] += value

    def get(self, name: str) -> int:
        with self._lock:
            return self.counters.get(name, 0)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self.counters)


__all__ = [
    "MetricsCollector",
    "LINES_SCANNED",
    "MATCHES",
    "PARSE_FAILURES",
    "READINGS_PUBLISHED",
    "PUBLISH_FAILURES",
    "READINGS_DROPPED",
]
