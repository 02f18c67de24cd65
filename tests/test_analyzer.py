import dataclasses
from pathlib import Path
from typing import Callable, List

import pytest

from loglat.core.aggregate import to_float32
from loglat.core.extraction import FieldIndexExtractor
from loglat.core.verbs import parse_verbs
from loglat.monitoring.metrics import LINES_SCANNED, MATCHES, PARSE_FAILURES, MetricsCollector
from loglat.services.analyzer import LatencyAnalyzer
from loglat.services.publisher import ReadingPublisher
from loglat.utils.config import AppSettings

MakeLog = Callable[[List[str]], Path]


def build_settings(**overrides: object) -> AppSettings:
    settings = AppSettings.from_env()
    defaults = {"queue_size": 100, "percentiles": (0, 10, 50, 90, 99, 100)}
    defaults.update(overrides)
    return dataclasses.replace(settings, **defaults)


def build_analyzer(**overrides: object) -> LatencyAnalyzer:
    return LatencyAnalyzer(settings=build_settings(**overrides), metrics=MetricsCollector())


def test_get_post_scenario(scenario_log: Path) -> None:
    report = build_analyzer().analyze(scenario_log, parse_verbs("GET,POST"))
    result = report.result
    assert result.count == 2
    assert result.min == to_float32(0.120)
    assert result.max == to_float32(0.340)
    assert result.average == pytest.approx(0.230, abs=1e-6)
    assert result.percentiles[50] == to_float32(0.340)
    assert result.percentiles[100] == to_float32(0.340)
    assert result.percentiles[0] == to_float32(0.120)
    assert report.counts == {"GET": 1, "POST": 1}
    assert report.counters[LINES_SCANNED] == 3
    assert report.counters[MATCHES] == 2
    assert report.scan_error is None


def test_unparseable_token_is_skipped(make_log: MakeLog) -> None:
    path = make_log(
        [
            "2024-01-01 10:00:00 GET /api 200 0.120",
            "2024-01-01 10:00:02 GET /api 504 N/A",
        ]
    )
    report = build_analyzer().analyze(path, ("GET",))
    assert report.result.count == 1
    assert report.result.average == to_float32(0.120)
    assert report.counts == {"GET": 1}
    assert report.counters[PARSE_FAILURES] == 1


def test_duplicate_verbs_double_count(make_log: MakeLog) -> None:
    path = make_log(["2024-01-01 10:00:00 GET /api 200 0.500"])
    report = build_analyzer().analyze(path, parse_verbs("GET,GET"))
    assert report.result.count == 2
    assert report.counts == {"GET": 2}
    assert report.counters[MATCHES] == 2


def test_no_matching_lines_gives_empty_result(scenario_log: Path) -> None:
    report = build_analyzer().analyze(scenario_log, ("DELETE",))
    assert report.result.is_empty
    assert report.counts == {}


def test_no_verbs_gives_empty_result(scenario_log: Path) -> None:
    report = build_analyzer().analyze(scenario_log, parse_verbs(""))
    assert report.result.is_empty
    assert report.counters[LINES_SCANNED] == 3


def test_counts_match_values(make_log: MakeLog) -> None:
    lines = [f"GET POST /x {i / 10}" if i % 3 else f"POST /y {i}" for i in range(1, 60)]
    lines.append("GET bad-value")
    report = build_analyzer().analyze(make_log(lines), ("GET", "POST", "PUT"))
    assert report.result.count == sum(report.counts.values())


def test_small_queue_applies_backpressure_without_losing_matches(make_log: MakeLog) -> None:
    lines = [f"GET /item {i}" for i in range(500)]
    report = build_analyzer(queue_size=1).analyze(make_log(lines), ("GET",))
    assert report.result.count == 500
    assert report.result.min == 0.0
    assert report.result.max == 499.0
    assert report.result.percentiles[50] == 250.0


def test_rerun_is_identical(scenario_log: Path) -> None:
    verbs = ("GET", "POST")
    first = build_analyzer().analyze(scenario_log, verbs)
    second = build_analyzer().analyze(scenario_log, verbs)
    assert first.result == second.result
    assert first.counts == second.counts


def test_field_index_extraction(make_log: MakeLog) -> None:
    path = make_log(["2024-01-01 10:00:00 GET /api 0.250 trailing-status"])
    analyzer = LatencyAnalyzer(
        settings=build_settings(), metrics=MetricsCollector(), extractor=FieldIndexExtractor(4)
    )
    report = analyzer.analyze(path, ("GET",))
    assert report.result.count == 1
    assert report.result.max == 0.25


def test_explicit_ranks_override_settings(scenario_log: Path) -> None:
    report = build_analyzer().analyze(scenario_log, ("GET", "POST"), ranks=(90,))
    assert list(report.result.percentiles) == [90]


def test_overlong_line_reports_partial_results(make_log: MakeLog) -> None:
    path = make_log(["GET 1.0", "GET " + "9" * 100, "GET 2.0"])
    report = build_analyzer(max_line_length=50).analyze(path, ("GET",))
    assert report.result.count == 1
    assert report.result.max == 1.0
    assert report.scan_error is not None


def test_missing_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        build_analyzer().analyze(tmp_path / "missing.log", ("GET",))


def test_publisher_requires_region_id() -> None:
    publisher = ReadingPublisher(index_url="http://index.test/", metrics=MetricsCollector())
    with pytest.raises(ValueError):
        LatencyAnalyzer(settings=build_settings(), metrics=MetricsCollector(), publisher=publisher)
