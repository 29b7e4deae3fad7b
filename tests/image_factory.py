"""Helpers that generate synthetic images for detector tests."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence, Tuple

import cv2
import numpy as np

from tag_harness.detectors.aruco import load_dictionary

# (family, tag id, left, top)
Placement = Tuple[str, int, int, int]


def create_blank_image(width: int = 320, height: int = 320, value: int = 255) -> np.ndarray:
    image = np.zeros((height, width), dtype=np.uint8)
    image[:] = value
    return image


def create_marker(family: str, tag_id: int, side: int = 120) -> np.ndarray:
    return cv2.aruco.generateImageMarker(load_dictionary(family), tag_id, side)


def create_tag_image(
    placements: Sequence[Placement],
    width: int = 480,
    height: int = 240,
    side: int = 120,
) -> np.ndarray:
    canvas = create_blank_image(width, height)
    for family, tag_id, left, top in placements:
        canvas[top : top + side, left : left + side] = create_marker(family, tag_id, side)
    return canvas


def create_two_family_image() -> np.ndarray:
    return create_tag_image([("tag36h11", 3, 40, 60), ("tag16h5", 7, 300, 60)])


def write_image(path: Path, image: np.ndarray) -> Path:
    if not cv2.imwrite(str(path), image):
        raise RuntimeError(f"Unable to write test image {path}")
    return path
