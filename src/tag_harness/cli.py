"""Command line entry points."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from .batch import BatchRunner
from .config import DEFAULT_FAMILIES, HarnessConfig, parse_family_option
from .detectors import DetectorRegistry
from .errors import ConfigurationError
from .evaluation import DetectorSummary, collect_results, discover_detectors, summarize, write_comparison
from .orchestrator import DetectionOrchestrator

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level_name: str) -> None:
    """Configure application logging."""

    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tag-harness",
        description="Run tag detectors over a directory of images and write JSON reports.",
    )
    parser.add_argument("--input", required=True, help="Directory containing input images")
    parser.add_argument("--output", required=True, help="Directory receiving the JSON reports")
    parser.add_argument(
        "--families",
        default=",".join(family.name for family in DEFAULT_FAMILIES),
        help="Comma separated tag families, optionally NAME:bits=N (default: %(default)s)",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Number of images processed in parallel (default: CPU count)",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: %(default)s)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = HarnessConfig(families=parse_family_option(args.families), workers=args.workers)
        with DetectorRegistry(config.families) as registry:
            runner = BatchRunner(config, DetectionOrchestrator(registry.create))
            processed = runner.run(args.input, args.output)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130

    print(f"✨ Processed {processed} images")
    return 0


def build_compare_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tag-harness-compare",
        description="Score detector report directories against ground-truth reports.",
    )
    parser.add_argument("--ground-truth", required=True, help="Directory of ground-truth reports")
    parser.add_argument("--results", required=True, help="Directory with one subdirectory per detector")
    parser.add_argument(
        "--detector",
        action="append",
        dest="detectors",
        help="Detector subdirectory to score (repeatable; default: all)",
    )
    parser.add_argument("--output", default=None, help="Write the comparison as JSON to this file")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: %(default)s)")
    return parser


def format_summary(summary: DetectorSummary) -> List[str]:
    lines = [
        "=" * 60,
        f"📊 {summary.detector}",
        "=" * 60,
        f"  Ground truth tags: {summary.total_ground_truth}",
        f"  Detected tags:     {summary.total_detected}",
        f"  True positives:    {summary.true_positives}",
        f"  Missed:            {summary.missed}",
        f"  False positives:   {summary.false_positives}",
        f"  Precision: {summary.precision:.2%}  Recall: {summary.recall:.2%}  F1: {summary.f1_score:.2%}",
    ]
    if summary.supported_families:
        lines.append(f"  Supported families: {', '.join(summary.supported_families)}")
    for family, count in sorted(summary.missed_by_family.items()):
        lines.append(f"  - missed {family}: {count}")
    for family, count in sorted(summary.false_positives_by_family.items()):
        lines.append(f"  - false positive {family}: {count}")

    timing = summary.timing
    if timing.image_count:
        lines.append(
            f"  Avg load: {timing.avg_image_load_ms:.3f} ms  "
            f"Avg detection: {timing.avg_total_detection_ms:.3f} ms ({timing.image_count} images)"
        )
        for family in timing.family_timings:
            lines.append(
                f"  - {family.family}: init {family.avg_initialization_ms:.3f} ms, "
                f"detect {family.avg_detection_ms:.3f} ms"
            )
    return lines


def compare_main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_compare_parser().parse_args(argv)
    configure_logging(args.log_level)

    detectors = args.detectors or discover_detectors(args.results)
    if not detectors:
        print(f"Error: No detector results found in {args.results}", file=sys.stderr)
        return 1

    try:
        comparisons = collect_results(args.ground_truth, args.results, detectors)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    summaries = summarize(comparisons, detectors, args.results)
    print(f"Compared {len(comparisons)} images across {len(detectors)} detectors")
    for detector in detectors:
        print("\n".join(format_summary(summaries[detector])))

    if args.output:
        try:
            path = write_comparison(args.output, comparisons, summaries, detectors)
        except OSError as exc:
            print(f"Error: Could not write {args.output}: {exc}", file=sys.stderr)
            return 1
        print(f"💾 Comparison saved to {path}")
    return 0
