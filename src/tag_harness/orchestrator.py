"""High level API that runs every tag family over one image."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import FamilyConfig
from .detectors import TagDetector
from .errors import ImageLoadError
from .image_utils import ImageInput, ensure_gray, load_gray_image
from .types import Detection, DetectionResult, FamilyTiming, Timings

logger = logging.getLogger(__name__)

DetectorFactory = Callable[[FamilyConfig], TagDetector]
ImageLoader = Callable[[Path], np.ndarray]
Clock = Callable[[], float]


def _elapsed_ms(start: float, end: float) -> float:
    return (end - start) * 1000.0


class DetectionOrchestrator:
    """Runs each family's detector in order and aggregates the results."""

    def __init__(
        self,
        detector_factory: DetectorFactory,
        image_loader: Optional[ImageLoader] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.detector_factory = detector_factory
        self.image_loader: ImageLoader = image_loader or load_gray_image
        self.clock: Clock = clock or time.perf_counter

    def run(self, image_path: Union[str, Path], families: Sequence[FamilyConfig]) -> DetectionResult:
        """Load ``image_path`` and detect every family in ``families``.

        An unreadable image still produces a result, with empty detections
        and no family timings.
        """

        path = Path(image_path)
        result = DetectionResult(image=path.name)

        start = self.clock()
        try:
            image = self.image_loader(path)
        except (ImageLoadError, OSError, ValueError) as exc:
            result.timings.image_load_ms = _elapsed_ms(start, self.clock())
            logger.error("Failed to load image %s: %s", path, exc)
            return result
        result.timings.image_load_ms = _elapsed_ms(start, self.clock())

        self._detect_families(image, families, result)
        return result

    def detect_image(
        self, image: ImageInput, families: Sequence[FamilyConfig], name: str = "<memory>"
    ) -> DetectionResult:
        """Run every family over an in-memory image."""

        result = DetectionResult(image=name)
        self._detect_families(ensure_gray(image), families, result)
        return result

    def _detect_families(
        self, image: np.ndarray, families: Sequence[FamilyConfig], result: DetectionResult
    ) -> None:
        timings: Timings = result.timings
        for family in families:
            timing, detections = self._run_family(family, image)
            timings.add(timing)
            result.detections.extend(detections)

    def _run_family(
        self, family: FamilyConfig, image: np.ndarray
    ) -> Tuple[FamilyTiming, List[Detection]]:
        initialization_ms = 0.0
        detection_ms = 0.0
        detections: List[Detection] = []
        detector: Optional[TagDetector] = None
        initialized = False

        start = self.clock()
        try:
            detector = self.detector_factory(family)
            detector.initialize()
            initialization_ms = _elapsed_ms(start, self.clock())
            initialized = True

            start = self.clock()
            detections = list(detector.detect(image))
            detection_ms = _elapsed_ms(start, self.clock())
        except Exception:
            elapsed = _elapsed_ms(start, self.clock())
            if initialized:
                detection_ms = elapsed
            else:
                initialization_ms = elapsed
            detections = []
            logger.exception("Detection failed for family %s", family.name)
        finally:
            if detector is not None:
                detector.teardown()

        logger.debug("Detecting %s... found %d", family.name, len(detections))
        timing = FamilyTiming(
            family=family.name,
            initialization_ms=initialization_ms,
            detection_ms=detection_ms,
        )
        return timing, detections
