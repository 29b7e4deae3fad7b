"""JSON encoding and decoding of reports and manifests.

Key order, array order and indentation are fixed so that the same result
always produces the same text. String escaping is left to ``json``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from .errors import ReportFormatError
from .types import Corner, Detection, DetectionResult, FamilyTiming, Manifest, Timings

INDENT = 2


def result_to_dict(result: DetectionResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "image": result.image,
        "detections": [_detection_to_dict(detection) for detection in result.detections],
    }
    if result.timings is not None:
        payload["timings"] = timings_to_dict(result.timings)
    return payload


def manifest_to_dict(manifest: Manifest) -> Dict[str, Any]:
    return {"supported_families": list(manifest.supported_families)}


def serialize_result(result: DetectionResult) -> str:
    return dump_json(result_to_dict(result))


def serialize_manifest(manifest: Manifest) -> str:
    return dump_json(manifest_to_dict(manifest))


def parse_result(text: str) -> DetectionResult:
    """Parse a report document back into a :class:`DetectionResult`."""

    data = _loads(text)
    try:
        timings = data.get("timings")
        return DetectionResult(
            image=str(data["image"]),
            detections=[_detection_from_dict(item) for item in data["detections"]],
            timings=_timings_from_dict(timings) if timings is not None else None,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ReportFormatError(f"Malformed detection report: {exc}") from exc


def parse_manifest(text: str) -> Manifest:
    data = _loads(text)
    try:
        families = data["supported_families"]
        if not isinstance(families, list):
            raise TypeError("supported_families must be a list")
        return Manifest.from_names([str(name) for name in families])
    except (KeyError, TypeError, AttributeError) as exc:
        raise ReportFormatError(f"Malformed manifest: {exc}") from exc


def load_result(path: Union[str, Path]) -> DetectionResult:
    return parse_result(Path(path).read_text(encoding="utf-8"))


def load_manifest(path: Union[str, Path]) -> Manifest:
    return parse_manifest(Path(path).read_text(encoding="utf-8"))


def dump_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, indent=INDENT, ensure_ascii=False, allow_nan=False) + "\n"


def _loads(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportFormatError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ReportFormatError("Expected a JSON object at the top level")
    return data


def _detection_to_dict(detection: Detection) -> Dict[str, Any]:
    return {
        "tag_id": detection.tag_id,
        "tag_family": detection.tag_family,
        "corners": [{"x": float(corner.x), "y": float(corner.y)} for corner in detection.corners],
    }


def timings_to_dict(timings: Timings) -> Dict[str, Any]:
    return {
        "image_load_ms": float(timings.image_load_ms),
        "total_detection_ms": float(timings.total_detection_ms),
        "family_timings": [
            {
                "family": timing.family,
                "initialization_ms": float(timing.initialization_ms),
                "detection_ms": float(timing.detection_ms),
            }
            for timing in timings.family_timings
        ],
    }


def _detection_from_dict(data: Dict[str, Any]) -> Detection:
    corners: List[Corner] = [Corner(x=float(c["x"]), y=float(c["y"])) for c in data["corners"]]
    return Detection(tag_id=int(data["tag_id"]), tag_family=str(data["tag_family"]), corners=tuple(corners))


def _timings_from_dict(data: Dict[str, Any]) -> Timings:
    return Timings(
        image_load_ms=float(data["image_load_ms"]),
        total_detection_ms=float(data["total_detection_ms"]),
        family_timings=[
            FamilyTiming(
                family=str(item["family"]),
                initialization_ms=float(item["initialization_ms"]),
                detection_ms=float(item["detection_ms"]),
            )
            for item in data["family_timings"]
        ],
    )
