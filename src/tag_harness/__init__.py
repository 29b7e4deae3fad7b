"""Public exports for the tag detection harness package."""

from .batch import BatchRunner
from .config import FamilyConfig, HarnessConfig, RegistrationMode
from .detectors import DetectorRegistry, TagDetector
from .orchestrator import DetectionOrchestrator
from .types import Corner, Detection, DetectionResult, FamilyTiming, Manifest, Timings

__all__ = [
    "BatchRunner",
    "Corner",
    "Detection",
    "DetectionOrchestrator",
    "DetectionResult",
    "DetectorRegistry",
    "FamilyConfig",
    "FamilyTiming",
    "HarnessConfig",
    "Manifest",
    "RegistrationMode",
    "TagDetector",
    "Timings",
]
