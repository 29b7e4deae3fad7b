"""Ownership of the configured families' codebooks."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

import cv2

from ..config import FamilyConfig
from ..errors import UnsupportedFamilyError
from .aruco import APRILTAG_DICTIONARIES, ArucoTagDetector, load_dictionary
from .base import TagDetector

logger = logging.getLogger(__name__)


class DetectorRegistry:
    """Builds every family's codebook on entry and releases them on exit.

    ``create`` hands out a fresh detector per call, so concurrent images
    never share decoder state; only the read-only codebooks are shared.
    """

    def __init__(self, families: Sequence[FamilyConfig]) -> None:
        unknown = [family.name for family in families if family.name not in APRILTAG_DICTIONARIES]
        if unknown:
            supported = ", ".join(sorted(APRILTAG_DICTIONARIES))
            raise UnsupportedFamilyError(
                f"Unsupported tag families: {', '.join(unknown)} (supported: {supported})"
            )
        self.families = tuple(families)
        self._codebooks: Optional[Dict[str, cv2.aruco.Dictionary]] = None

    def __enter__(self) -> "DetectorRegistry":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        if self._codebooks is not None:
            return
        self._codebooks = {family.name: load_dictionary(family.name) for family in self.families}
        logger.debug("Loaded codebooks for %s", ", ".join(self._codebooks))

    def close(self) -> None:
        self._codebooks = None

    def create(self, family: FamilyConfig) -> TagDetector:
        if self._codebooks is None:
            raise RuntimeError("DetectorRegistry used outside of its resource scope")
        try:
            dictionary = self._codebooks[family.name]
        except KeyError:
            raise UnsupportedFamilyError(f"Family {family.name} is not registered") from None
        return ArucoTagDetector(family, dictionary)

    @staticmethod
    def supported_families() -> Sequence[str]:
        return sorted(APRILTAG_DICTIONARIES)
