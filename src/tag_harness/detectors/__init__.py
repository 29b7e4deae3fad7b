"""Detector exports."""

from .aruco import APRILTAG_DICTIONARIES, ArucoTagDetector
from .base import CANONICAL_CORNER_ORDER, TagDetector, normalize_corners
from .registry import DetectorRegistry

__all__ = [
    "APRILTAG_DICTIONARIES",
    "ArucoTagDetector",
    "CANONICAL_CORNER_ORDER",
    "DetectorRegistry",
    "TagDetector",
    "normalize_corners",
]
