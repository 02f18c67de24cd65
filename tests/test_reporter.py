import json

from loglat.core.aggregate import Aggregate, to_float32
from loglat.core.percentiles import PercentileResult, compute_percentiles
from loglat.core.reporter import AnalysisReport, format_summary, summary_payload


def build_result() -> PercentileResult:
    aggregate = Aggregate()
    aggregate.add("GET", to_float32(0.120))
    aggregate.add("POST", to_float32(0.340))
    return compute_percentiles(aggregate, (100, 50, 10))


def test_format_summary_orders_ranks_ascending() -> None:
    assert format_summary(build_result()) == (
        "count: 2,    min: 0.120,    avg: 0.230,    max: 0.340\n"
        "P10%: 0.120,    P50%: 0.340,    P100%: 0.340"
    )


def test_format_summary_empty_result() -> None:
    assert format_summary(PercentileResult.empty()) == "count: 0,    no latency readings"


def test_summary_payload_is_json_serializable() -> None:
    report = AnalysisReport(
        source="access.log",
        verbs=("GET", "POST"),
        result=build_result(),
        counts={"GET": 1, "POST": 1},
        counters={"matches": 2},
    )
    payload = json.loads(json.dumps(summary_payload(report)))
    assert payload["count"] == 2
    assert list(payload["percentiles"]) == ["10", "50", "100"]
    assert payload["counts"] == {"GET": 1, "POST": 1}
    assert payload["scan_error"] is None


def test_summary_payload_empty_result() -> None:
    report = AnalysisReport(source="a.log", verbs=(), result=PercentileResult.empty())
    payload = summary_payload(report)
    assert payload["count"] == 0
    assert payload["min"] is None
    assert payload["percentiles"] == {}
