"""Command-line entry point: ``loglat VERBS LOGFILE [REGION_ID]``."""
import argparse
import cProfile
import dataclasses
import json
import sys
from typing import List, Optional

from loglat.core.percentiles import parse_ranks
from loglat.core.reporter import format_summary, summary_payload
from loglat.core.verbs import parse_verbs
from loglat.deps import get_analyzer
from loglat.monitoring.logger import LOG_FORMATS, configure_logging, logger
from loglat.utils.config import AppSettings, get_settings


def positive_int(raw: str) -> int:
    value = int(raw)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {raw}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loglat",
        description="Report latency percentiles for log lines matching a set of verbs.",
    )
    parser.add_argument("verbs", help="comma-separated substrings to match, e.g. GET,POST")
    parser.add_argument("logfile", help="log file to scan")
    parser.add_argument(
        "region_id",
        nargs="?",
        default=None,
        help="region id; when given, every reading is published to the index",
    )
    parser.add_argument("--cpu-profile", metavar="PATH", help="write a cProfile dump to PATH")
    parser.add_argument(
        "--field-index",
        type=int,
        default=None,
        help="read the latency from this zero-based field instead of the last one",
    )
    parser.add_argument(
        "--percentiles",
        type=parse_ranks,
        default=None,
        help="comma-separated percentile ranks (0-100)",
    )
    parser.add_argument(
        "--max-line-length", type=positive_int, default=None, help="longest accepted line in bytes"
    )
    parser.add_argument("--queue-size", type=positive_int, default=None, help="capacity of the match queue")
    parser.add_argument("--index-url", default=None, help="indexing endpoint for published readings")
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    parser.add_argument("--log-format", choices=LOG_FORMATS, default=None, help="format of log records on stderr")
    return parser


def apply_overrides(settings: AppSettings, args: argparse.Namespace) -> AppSettings:
    overrides = {
        "field_index": args.field_index,
        "percentiles": args.percentiles,
        "max_line_length": args.max_line_length,
        "queue_size": args.queue_size,
        "index_url": args.index_url,
        "log_format": args.log_format,
    }
    return dataclasses.replace(settings, **{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = apply_overrides(get_settings(), args)
    configure_logging(settings.service_name, settings.log_level, settings.log_format)

    verbs = parse_verbs(args.verbs)
    if not verbs:
        logger.warning("no verbs given, nothing will match")
    analyzer = get_analyzer(settings, region_id=args.region_id)

    profiler = cProfile.Profile() if args.cpu_profile else None
    if profiler is not None:
        profiler.enable()
    try:
        report = analyzer.analyze(args.logfile, verbs)
    except OSError as exc:
        logger.error(
            "cannot open log file",
            extra={"ctx_file": args.logfile, "ctx_error": str(exc)},
        )
        return 1
    finally:
        if profiler is not None:
            profiler.disable()
            try:
                profiler.dump_stats(args.cpu_profile)
            except OSError as exc:
                logger.error(
                    "cannot write cpu profile",
                    extra={"ctx_file": args.cpu_profile, "ctx_error": str(exc)},
                )

    if args.json:
        print(json.dumps(summary_payload(report)))
    else:
        print(format_summary(report.result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
