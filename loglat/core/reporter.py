"""Formatting of run results."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from loglat.core.percentiles import PercentileResult


@dataclass(frozen=True)
class AnalysisReport:
    source: str
    verbs: Tuple[str, ...]
    result: PercentileResult
    counts: Dict[str, int] = field(default_factory=dict)
    counters: Dict[str, int] = field(default_factory=dict)
    scan_error: Optional[str] = None


def format_summary(result: PercentileResult) -> str:
    if result.is_empty:
        return "count: 0,    no latency readings"
    summary = "count: %d,    min: %.3f,    avg: %.3f,    max: %.3f" % (
        result.count,
        result.min,
        result.average,
        result.max,
    )
    ranks = ",    ".join(
        "P%d%%: %.3f" % (rank, result.percentiles[rank]) for rank in sorted(result.percentiles)
    )
    if ranks:
        summary += "\n" + ranks
    return summary


def summary_payload(report: AnalysisReport) -> Dict[str, Any]:
    """JSON-serializable view of a report. Percentile keys are strings."""

    result = report.result
    return {
        "source": report.source,
        "verbs": list(report.verbs),
        "count": result.count,
        "min": result.min,
        "max": result.max,
        "average": result.average,
        "percentiles": {str(rank): result.percentiles[rank] for rank in sorted(result.percentiles)},
        "counts": dict(report.counts),
        "counters": dict(report.counters),
        "scan_error": report.scan_error,
    }


__all__ = ["AnalysisReport", "format_summary", "summary_payload"]
