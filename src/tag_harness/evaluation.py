"""Scoring of detector report directories against ground-truth reports.

Each detector writes its reports into its own subdirectory of a results
directory; a ground-truth directory holds reports with the expected tags.
Detections are matched on ``(tag_family, tag_id)`` only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .errors import InputDirectoryError, ReportFormatError
from .serializer import dump_json, load_manifest, load_result, timings_to_dict
from .types import DetectionResult, Timings

logger = logging.getLogger(__name__)

DetectionKey = Tuple[str, int]


@dataclass
class ImageComparison:
    image: str
    ground_truth: List[DetectionKey]
    detector_results: Dict[str, List[DetectionKey]] = field(default_factory=dict)
    missed: Dict[str, List[DetectionKey]] = field(default_factory=dict)
    false_positives: Dict[str, List[DetectionKey]] = field(default_factory=dict)
    timings: Dict[str, Optional[Timings]] = field(default_factory=dict)


@dataclass(frozen=True)
class FamilyTimingSummary:
    family: str
    avg_initialization_ms: float
    avg_detection_ms: float
    count: int


@dataclass(frozen=True)
class TimingSummary:
    avg_image_load_ms: float
    avg_total_detection_ms: float
    total_image_load_ms: float
    total_detection_ms: float
    image_count: int
    family_timings: Tuple[FamilyTimingSummary, ...]


@dataclass(frozen=True)
class DetectorSummary:
    detector: str
    total_ground_truth: int
    total_detected: int
    true_positives: int
    missed: int
    false_positives: int
    precision: float
    recall: float
    f1_score: float
    missed_by_family: Dict[str, int]
    false_positives_by_family: Dict[str, int]
    supported_families: Tuple[str, ...]
    timing: TimingSummary


def discover_detectors(results_dir: Union[str, Path]) -> List[str]:
    results_dir = Path(results_dir)
    if not results_dir.is_dir():
        return []
    return sorted(
        entry.name for entry in results_dir.iterdir() if entry.is_dir() and not entry.name.startswith(".")
    )


def _load_optional(path: Path) -> Optional[DetectionResult]:
    if not path.is_file():
        return None
    try:
        return load_result(path)
    except (OSError, ReportFormatError) as exc:
        logger.warning("Ignoring unreadable report %s: %s", path, exc)
        return None


def collect_results(
    ground_truth_dir: Union[str, Path],
    results_dir: Union[str, Path],
    detectors: Sequence[str],
) -> Dict[str, ImageComparison]:
    """Compare each detector's reports with the ground truth, image by image."""

    ground_truth_dir = Path(ground_truth_dir)
    results_dir = Path(results_dir)
    if not ground_truth_dir.is_dir():
        raise InputDirectoryError(f"Ground truth directory not found: {ground_truth_dir}")

    comparisons: Dict[str, ImageComparison] = {}
    for gt_path in sorted(ground_truth_dir.glob("*.json")):
        truth = _load_optional(gt_path)
        if truth is None:
            continue

        image = truth.image or gt_path.stem
        comparison = ImageComparison(image=image, ground_truth=[d.key for d in truth.detections])
        truth_keys = set(comparison.ground_truth)

        for detector in detectors:
            report = _load_optional(results_dir / detector / gt_path.name)
            detected = [d.key for d in report.detections] if report is not None else []
            detected_keys = set(detected)
            comparison.detector_results[detector] = detected
            comparison.timings[detector] = report.timings if report is not None else None
            comparison.missed[detector] = [key for key in comparison.ground_truth if key not in detected_keys]
            comparison.false_positives[detector] = [key for key in detected if key not in truth_keys]

        comparisons[image] = comparison
    return comparisons


def summarize(
    comparisons: Dict[str, ImageComparison],
    detectors: Sequence[str],
    results_dir: Union[str, Path],
) -> Dict[str, DetectorSummary]:
    """Aggregate accuracy and timing statistics per detector."""

    results_dir = Path(results_dir)
    summaries: Dict[str, DetectorSummary] = {}
    for detector in detectors:
        total_gt = total_detected = total_missed = total_fp = 0
        missed_by_family: Dict[str, int] = {}
        fp_by_family: Dict[str, int] = {}

        total_load_ms = total_detection_ms = 0.0
        timed_images = 0
        family_totals: Dict[str, List[float]] = {}

        for comparison in comparisons.values():
            total_gt += len(comparison.ground_truth)
            total_detected += len(comparison.detector_results.get(detector, []))

            missed = comparison.missed.get(detector, [])
            false_positives = comparison.false_positives.get(detector, [])
            total_missed += len(missed)
            total_fp += len(false_positives)
            for family, _tag_id in missed:
                missed_by_family[family] = missed_by_family.get(family, 0) + 1
            for family, _tag_id in false_positives:
                fp_by_family[family] = fp_by_family.get(family, 0) + 1

            timings = comparison.timings.get(detector)
            if timings is None:
                continue
            total_load_ms += timings.image_load_ms
            total_detection_ms += timings.total_detection_ms
            timed_images += 1
            for timing in timings.family_timings:
                totals = family_totals.setdefault(timing.family, [0.0, 0.0, 0])
                totals[0] += timing.initialization_ms
                totals[1] += timing.detection_ms
                totals[2] += 1

        true_positives = total_gt - total_missed
        precision = true_positives / total_detected if total_detected > 0 else 0.0
        recall = true_positives / total_gt if total_gt > 0 else 0.0
        f1_score = 2 * precision * recall / (precision + recall) if precision + recall > 0 else 0.0

        timing = TimingSummary(
            avg_image_load_ms=total_load_ms / timed_images if timed_images else 0.0,
            avg_total_detection_ms=total_detection_ms / timed_images if timed_images else 0.0,
            total_image_load_ms=total_load_ms,
            total_detection_ms=total_detection_ms,
            image_count=timed_images,
            family_timings=tuple(
                FamilyTimingSummary(
                    family=family,
                    avg_initialization_ms=init_ms / count,
                    avg_detection_ms=detect_ms / count,
                    count=int(count),
                )
                for family, (init_ms, detect_ms, count) in family_totals.items()
            ),
        )

        summaries[detector] = DetectorSummary(
            detector=detector,
            total_ground_truth=total_gt,
            total_detected=total_detected,
            true_positives=true_positives,
            missed=total_missed,
            false_positives=total_fp,
            precision=precision,
            recall=recall,
            f1_score=f1_score,
            missed_by_family=missed_by_family,
            false_positives_by_family=fp_by_family,
            supported_families=_supported_families(results_dir / detector),
            timing=timing,
        )
    return summaries


def _supported_families(detector_dir: Path) -> Tuple[str, ...]:
    manifest_path = detector_dir / "manifest.json"
    if not manifest_path.is_file():
        return ()
    try:
        return load_manifest(manifest_path).supported_families
    except (OSError, ReportFormatError) as exc:
        logger.warning("Ignoring unreadable manifest %s: %s", manifest_path, exc)
        return ()


def format_key(key: DetectionKey) -> str:
    family, tag_id = key
    return f"{family}:{tag_id}"


def comparison_to_dict(comparison: ImageComparison) -> Dict[str, Any]:
    detectors = list(comparison.detector_results)
    return {
        "image": comparison.image,
        "ground_truth": [format_key(key) for key in comparison.ground_truth],
        "detector_results": {
            name: [format_key(key) for key in comparison.detector_results[name]] for name in detectors
        },
        "missed": {name: [format_key(key) for key in comparison.missed.get(name, [])] for name in detectors},
        "false_positives": {
            name: [format_key(key) for key in comparison.false_positives.get(name, [])] for name in detectors
        },
        "stats": {
            name: {
                "detected": len(comparison.detector_results[name]),
                "missed": len(comparison.missed.get(name, [])),
                "false_positives": len(comparison.false_positives.get(name, [])),
            }
            for name in detectors
        },
        "timings": {
            name: timings_to_dict(timings) if timings is not None else None
            for name, timings in comparison.timings.items()
        },
    }


def summary_to_dict(summary: DetectorSummary) -> Dict[str, Any]:
    timing = summary.timing
    return {
        "detector": summary.detector,
        "total_ground_truth": summary.total_ground_truth,
        "total_detected": summary.total_detected,
        "true_positives": summary.true_positives,
        "missed": summary.missed,
        "false_positives": summary.false_positives,
        "precision": summary.precision,
        "recall": summary.recall,
        "f1_score": summary.f1_score,
        "missed_by_family": dict(summary.missed_by_family),
        "false_positives_by_family": dict(summary.false_positives_by_family),
        "supported_families": list(summary.supported_families),
        "timing": {
            "avg_image_load_ms": timing.avg_image_load_ms,
            "avg_total_detection_ms": timing.avg_total_detection_ms,
            "total_image_load_ms": timing.total_image_load_ms,
            "total_detection_ms": timing.total_detection_ms,
            "image_count": timing.image_count,
            "family_timings": [
                {
                    "family": family.family,
                    "avg_initialization_ms": family.avg_initialization_ms,
                    "avg_detection_ms": family.avg_detection_ms,
                    "count": family.count,
                }
                for family in timing.family_timings
            ],
        },
    }


def write_comparison(
    path: Union[str, Path],
    comparisons: Dict[str, ImageComparison],
    summaries: Dict[str, DetectorSummary],
    detectors: Sequence[str],
) -> Path:
    """Write the per-image comparisons and per-detector summaries as JSON."""

    path = Path(path)
    payload = {
        "detectors": list(detectors),
        "summaries": {name: summary_to_dict(summaries[name]) for name in detectors},
        "images": [comparison_to_dict(comparisons[image]) for image in sorted(comparisons)],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_json(payload), encoding="utf-8")
    return path
