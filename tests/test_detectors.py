"""Unit tests for the detector adapters using synthetic images."""

from __future__ import annotations

import pytest

from tag_harness.config import FamilyConfig, RegistrationMode
from tag_harness.detectors import CANONICAL_CORNER_ORDER, DetectorRegistry, normalize_corners
from tag_harness.detectors.aruco import APRILTAG_DICTIONARIES
from tag_harness.errors import UnsupportedFamilyError
from tag_harness.orchestrator import DetectionOrchestrator

from . import image_factory as factory


def _detect(family: FamilyConfig, image):
    with DetectorRegistry([family]) as registry:
        detector = registry.create(family)
        detector.initialize()
        try:
            return detector.detect(image)
        finally:
            detector.teardown()


def test_normalize_corners_reorders_clockwise_input():
    points = [(0, 0), (10, 0), (10, 10), (0, 10)]
    corners = normalize_corners(points, ("top_left", "top_right", "bottom_right", "bottom_left"))
    assert [(c.x, c.y) for c in corners] == [(0.0, 10.0), (10.0, 10.0), (10.0, 0.0), (0.0, 0.0)]


def test_normalize_corners_keeps_canonical_input():
    points = [(1, 9), (9, 9), (9, 1), (1, 1)]
    corners = normalize_corners(points, CANONICAL_CORNER_ORDER)
    assert [(c.x, c.y) for c in corners] == [(1.0, 9.0), (9.0, 9.0), (9.0, 1.0), (1.0, 1.0)]


def test_normalize_corners_rejects_incomplete_order():
    with pytest.raises(ValueError):
        normalize_corners([(0, 0), (1, 1), (2, 2)], ("top_left", "top_right", "bottom_right"))


@pytest.mark.parametrize("family", sorted(APRILTAG_DICTIONARIES))
def test_aruco_detector_finds_synthetic_marker(family: str):
    image = factory.create_tag_image([(family, 1, 100, 60)], width=320, height=240)
    detections = _detect(FamilyConfig(family), image)

    assert [(d.tag_family, d.tag_id) for d in detections] == [(family, 1)]
    bottom_left, bottom_right, top_right, top_left = detections[0].corners
    assert bottom_left.y >= top_right.y
    assert bottom_left.x <= bottom_right.x
    assert top_left.x == pytest.approx(100, abs=3)
    assert top_left.y == pytest.approx(60, abs=3)
    assert bottom_right.x == pytest.approx(219, abs=3)
    assert bottom_right.y == pytest.approx(179, abs=3)


def test_aruco_detector_ignores_blank_canvas():
    assert _detect(FamilyConfig("tag36h11"), factory.create_blank_image()) == []


def test_bits_registration_mode_still_detects():
    family = FamilyConfig("tag36h11", RegistrationMode.BITS, bits_corrected=1)
    image = factory.create_tag_image([("tag36h11", 42, 100, 60)], width=320, height=240)
    detections = _detect(family, image)
    assert [d.tag_id for d in detections] == [42]


def test_detect_before_initialize_raises():
    family = FamilyConfig("tag16h5")
    with DetectorRegistry([family]) as registry:
        detector = registry.create(family)
        with pytest.raises(RuntimeError):
            detector.detect(factory.create_blank_image())


def test_registry_rejects_unknown_family():
    with pytest.raises(UnsupportedFamilyError):
        DetectorRegistry([FamilyConfig("tag36h11"), FamilyConfig("tagCircle21h7")])


def test_registry_create_outside_scope_raises():
    family = FamilyConfig("tag36h11")
    registry = DetectorRegistry([family])
    with pytest.raises(RuntimeError):
        registry.create(family)
    with registry:
        assert registry.create(family).name == "tag36h11"
    with pytest.raises(RuntimeError):
        registry.create(family)


def test_registry_hands_out_fresh_detectors():
    family = FamilyConfig("tag25h9")
    with DetectorRegistry([family]) as registry:
        assert registry.create(family) is not registry.create(family)


def test_removing_a_family_keeps_other_detections():
    image = factory.create_two_family_image()
    both = [FamilyConfig("tag36h11"), FamilyConfig("tag16h5")]
    only = [FamilyConfig("tag36h11")]

    with DetectorRegistry(both) as registry:
        orchestrator = DetectionOrchestrator(registry.create)
        with_both = orchestrator.detect_image(image, both)
        with_one = orchestrator.detect_image(image, only)

    keys = {d.key for d in with_both.detections}
    assert ("tag36h11", 3) in keys
    assert ("tag16h5", 7) in keys
    assert [d for d in with_both.detections if d.tag_family == "tag36h11"] == with_one.detections
