"""Configuration utilities for the latency analyzer."""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple
import os

from loglat.core.percentiles import parse_ranks

DEFAULT_PERCENTILES = "0,10,50,90,99,100"
DEFAULT_INDEX_URL = "http://localhost:9200/frontend3/log/"


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


@dataclass(frozen=True)
class AppSettings:
    """Run configuration loaded from environment variables."""

    service_name: str
    log_level: str
    log_format: str
    queue_size: int
    max_line_length: int
    percentiles: Tuple[int, ...]
    field_index: Optional[int]
    index_url: str
    publish_timeout_seconds: float
    publish_queue_size: int
    publish_submit_timeout_seconds: float
    date_field_index: int
    time_field_index: int

    @staticmethod
    def from_env() -> "AppSettings":
        return AppSettings(
            service_name=os.getenv("LOGLAT_SERVICE_NAME", "loglat"),
            log_level=os.getenv("LOGLAT_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOGLAT_LOG_FORMAT", "json").lower(),
            queue_size=int(os.getenv("LOGLAT_QUEUE_SIZE", "10000")),
            max_line_length=int(os.getenv("LOGLAT_MAX_LINE_LENGTH", "1000000")),
            percentiles=parse_ranks(os.getenv("LOGLAT_PERCENTILES", DEFAULT_PERCENTILES)),
            field_index=_optional_int("LOGLAT_FIELD_INDEX"),
            index_url=os.getenv("LOGLAT_INDEX_URL", DEFAULT_INDEX_URL),
            publish_timeout_seconds=float(os.getenv("LOGLAT_PUBLISH_TIMEOUT_SECONDS", "2.0")),
            publish_queue_size=int(os.getenv("LOGLAT_PUBLISH_QUEUE_SIZE", "1024")),
            publish_submit_timeout_seconds=float(
                os.getenv("LOGLAT_PUBLISH_SUBMIT_TIMEOUT_SECONDS", "2.0")
            ),
            date_field_index=int(os.getenv("LOGLAT_DATE_FIELD_INDEX", "3")),
            time_field_index=int(os.getenv("LOGLAT_TIME_FIELD_INDEX", "4")),
        )


@lru_cache()
def get_settings() -> AppSettings:
    """Return cached run settings."""

    return AppSettings.from_env()


__all__ = ["AppSettings", "get_settings", "DEFAULT_INDEX_URL", "DEFAULT_PERCENTILES"]
