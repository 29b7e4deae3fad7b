"""Test doubles for detectors and clocks."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from tag_harness.config import FamilyConfig
from tag_harness.detectors import TagDetector
from tag_harness.types import Corner, Detection


def square_corners(left: float, top: float, side: float = 10.0) -> Sequence[Corner]:
    bottom = top + side
    right = left + side
    return (
        Corner(left, bottom),
        Corner(right, bottom),
        Corner(right, top),
        Corner(left, top),
    )


class FakeClock:
    """Advances by ``step`` seconds every time it is read."""

    def __init__(self, step: float = 0.001) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


class StaticDetector(TagDetector):
    """Returns pre-configured tag ids and records its lifecycle calls."""

    def __init__(
        self,
        family: FamilyConfig,
        tag_ids: Sequence[int] = (),
        events: Optional[List[str]] = None,
        fail_on: Optional[str] = None,
    ) -> None:
        super().__init__(family)
        self.tag_ids = list(tag_ids)
        self.events = events if events is not None else []
        self.fail_on = fail_on

    def initialize(self) -> None:
        self.events.append(f"{self.name}:initialize")
        if self.fail_on == "initialize":
            raise RuntimeError(f"{self.name} failed to initialize")

    def detect(self, image: np.ndarray) -> List[Detection]:
        self.events.append(f"{self.name}:detect")
        if self.fail_on == "detect":
            raise RuntimeError(f"{self.name} failed to detect")
        return [
            Detection(tag_id=tag_id, tag_family=self.name, corners=square_corners(10.0 * index, 5.0))
            for index, tag_id in enumerate(self.tag_ids)
        ]

    def teardown(self) -> None:
        self.events.append(f"{self.name}:teardown")


class StaticDetectorFactory:
    """Builds a :class:`StaticDetector` per call from per-family settings."""

    def __init__(
        self,
        tag_ids: Optional[Dict[str, Sequence[int]]] = None,
        fail_on: Optional[Dict[str, str]] = None,
    ) -> None:
        self.tag_ids = tag_ids or {}
        self.fail_on = fail_on or {}
        self.events: List[str] = []
        self.created = 0

    def __call__(self, family: FamilyConfig) -> StaticDetector:
        self.created += 1
        return StaticDetector(
            family,
            tag_ids=self.tag_ids.get(family.name, ()),
            events=self.events,
            fail_on=self.fail_on.get(family.name),
        )
