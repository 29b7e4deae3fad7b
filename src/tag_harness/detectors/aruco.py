"""AprilTag detection through OpenCV's aruco module."""

from __future__ import annotations

from typing import List, Optional

import cv2
import numpy as np

from ..config import FamilyConfig, RegistrationMode
from ..types import Detection
from .base import BOTTOM_LEFT, BOTTOM_RIGHT, TOP_LEFT, TOP_RIGHT, TagDetector

# Dictionaries OpenCV ships for the AprilTag families.
APRILTAG_DICTIONARIES = {
    "tag16h5": cv2.aruco.DICT_APRILTAG_16h5,
    "tag25h9": cv2.aruco.DICT_APRILTAG_25h9,
    "tag36h10": cv2.aruco.DICT_APRILTAG_36h10,
    "tag36h11": cv2.aruco.DICT_APRILTAG_36h11,
}


def load_dictionary(name: str) -> cv2.aruco.Dictionary:
    return cv2.aruco.getPredefinedDictionary(APRILTAG_DICTIONARIES[name])


class ArucoTagDetector(TagDetector):
    """Detect one AprilTag family with ``cv2.aruco.ArucoDetector``."""

    native_corner_order = (TOP_LEFT, TOP_RIGHT, BOTTOM_RIGHT, BOTTOM_LEFT)

    def __init__(self, family: FamilyConfig, dictionary: cv2.aruco.Dictionary) -> None:
        super().__init__(family)
        self.dictionary = dictionary
        self._detector: Optional[cv2.aruco.ArucoDetector] = None

    def initialize(self) -> None:
        params = cv2.aruco.DetectorParameters()
        if self.family.registration_mode is RegistrationMode.BITS:
            params.errorCorrectionRate = self._error_correction_rate()
        self._detector = cv2.aruco.ArucoDetector(self.dictionary, params)

    def detect(self, image: np.ndarray) -> List[Detection]:
        if self._detector is None:
            raise RuntimeError(f"Detector for {self.name} used before initialize()")

        corners, ids, _rejected = self._detector.detectMarkers(image)
        if ids is None or len(ids) == 0:
            return []

        detections = []
        for tag_id, quad in zip(ids.flatten(), corners):
            detections.append(self._make_detection(tag_id, quad.reshape(4, 2)))
        return detections

    def teardown(self) -> None:
        self._detector = None

    def _error_correction_rate(self) -> float:
        max_bits = max(1, int(self.dictionary.maxCorrectionBits))
        return float(max(0.0, min(1.0, self.family.bits_corrected / max_bits)))
