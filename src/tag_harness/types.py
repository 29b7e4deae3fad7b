"""Common types used throughout the detection pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Corner:
    """A sub-pixel point in image coordinates."""

    x: float
    y: float


@dataclass(frozen=True)
class Detection:
    """A single tag found in an image.

    Corners are ordered bottom-left, bottom-right, top-right, top-left.
    ``tag_id`` is only unique within ``tag_family``.
    """

    tag_id: int
    tag_family: str
    corners: Tuple[Corner, ...]

    def __post_init__(self) -> None:
        corners = tuple(self.corners)
        if len(corners) != 4:
            raise ValueError(f"Detection requires 4 corners, got {len(corners)}")
        object.__setattr__(self, "corners", corners)

    @property
    def key(self) -> Tuple[str, int]:
        return (self.tag_family, self.tag_id)


@dataclass(frozen=True)
class FamilyTiming:
    family: str
    initialization_ms: float
    detection_ms: float


@dataclass
class Timings:
    """Per-image timing; ``total_detection_ms`` excludes image loading."""

    image_load_ms: float = 0.0
    total_detection_ms: float = 0.0
    family_timings: List[FamilyTiming] = field(default_factory=list)

    def add(self, timing: FamilyTiming) -> None:
        self.family_timings.append(timing)
        self.total_detection_ms += timing.initialization_ms + timing.detection_ms


@dataclass
class DetectionResult:
    """Aggregated detections for one image across every family."""

    image: str
    detections: List[Detection] = field(default_factory=list)
    timings: Optional[Timings] = field(default_factory=Timings)


@dataclass(frozen=True)
class Manifest:
    supported_families: Tuple[str, ...]

    @classmethod
    def from_names(cls, names: Sequence[str]) -> "Manifest":
        return cls(supported_families=tuple(names))
