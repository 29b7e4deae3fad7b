"""Base detector definitions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from ..config import FamilyConfig
from ..types import Corner, Detection

BOTTOM_LEFT = "bottom_left"
BOTTOM_RIGHT = "bottom_right"
TOP_RIGHT = "top_right"
TOP_LEFT = "top_left"

CANONICAL_CORNER_ORDER: Tuple[str, ...] = (BOTTOM_LEFT, BOTTOM_RIGHT, TOP_RIGHT, TOP_LEFT)


def normalize_corners(
    points: Iterable[Sequence[float]], native_order: Sequence[str]
) -> Tuple[Corner, ...]:
    """Reorder corners reported in ``native_order`` into the canonical order."""

    by_position = dict(zip(native_order, points))
    if len(by_position) != 4 or set(by_position) != set(CANONICAL_CORNER_ORDER):
        raise ValueError(f"Expected 4 corners labelled {CANONICAL_CORNER_ORDER}, got {native_order}")
    return tuple(
        Corner(x=float(by_position[name][0]), y=float(by_position[name][1]))
        for name in CANONICAL_CORNER_ORDER
    )


class TagDetector(ABC):
    """Abstract detector for a single tag family.

    The lifecycle is ``initialize`` -> ``detect`` -> ``teardown``; the two
    first phases are timed separately by the orchestrator.
    """

    native_corner_order: Tuple[str, ...] = CANONICAL_CORNER_ORDER

    def __init__(self, family: FamilyConfig) -> None:
        self.family = family

    @property
    def name(self) -> str:
        return self.family.name

    @abstractmethod
    def initialize(self) -> None:
        """Register the family and build the decoder."""

    @abstractmethod
    def detect(self, image: np.ndarray) -> List[Detection]:
        """Return this family's detections in the grayscale image."""

    def teardown(self) -> None:
        """Release per-call decoder state."""

    def _make_detection(self, tag_id: int, points: Iterable[Sequence[float]]) -> Detection:
        return Detection(
            tag_id=int(tag_id),
            tag_family=self.name,
            corners=normalize_corners(points, self.native_corner_order),
        )
