"""Utility helpers for image loading and preprocessing."""

from __future__ import annotations

from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image

from .errors import ImageLoadError

ImageInput = Union[np.ndarray, Image.Image]


def load_gray_image(path: Union[str, Path]) -> np.ndarray:
    """Decode an image file into a 2-D ``uint8`` grayscale array."""

    path = Path(path)
    try:
        raw = np.frombuffer(path.read_bytes(), dtype=np.uint8)
    except OSError as exc:
        raise ImageLoadError(f"Unable to read image file {path}: {exc}") from exc
    if raw.size == 0:
        raise ImageLoadError(f"Image file is empty: {path}")

    try:
        image = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED)
    except cv2.error as exc:
        raise ImageLoadError(f"Unable to decode image from path: {path}: {exc}") from exc
    if image is None:
        raise ImageLoadError(f"Unable to decode image from path: {path}")
    return ensure_gray(image)


def ensure_gray(image: ImageInput) -> np.ndarray:
    """Convert an array or PIL image into 8-bit single-channel grayscale."""

    if isinstance(image, Image.Image):
        return np.asarray(image.convert("L"), dtype=np.uint8).copy()

    if image.dtype != np.uint8:
        image = _to_uint8(image)
    if image.ndim == 2:
        return np.ascontiguousarray(image)
    if image.ndim == 3 and image.shape[2] == 1:
        return np.ascontiguousarray(image[:, :, 0])
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    raise ImageLoadError(f"Unsupported image shape: {image.shape}")


def _to_uint8(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint16:
        return (image >> 8).astype(np.uint8)
    if np.issubdtype(image.dtype, np.floating):
        return np.clip(image * 255.0, 0, 255).astype(np.uint8)
    return np.clip(image, 0, 255).astype(np.uint8)
