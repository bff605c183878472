"""Tests for ISO-aware motion analysis."""

import pytest

from pawmoment.analyzers.motion import analyze_motion, select_velocity_ceiling
from pawmoment.config import IsoTier, MotionConfig
from pawmoment.types import Keypoint

ORIGIN = Keypoint(0.0, 0.5)


def nose_at(dx: float) -> Keypoint:
    return Keypoint(dx, 0.5)


class TestVelocityCeiling:
    @pytest.mark.parametrize(
        "iso,expected",
        [
            (50, 0.04),
            (199.9, 0.04),
            (200, 0.02),
            (799, 0.02),
            (800, 0.005),
            (6400, 0.005),
        ],
    )
    def test_default_tiers(self, iso, expected):
        assert select_velocity_ceiling(iso) == expected

    def test_custom_tiers(self):
        config = MotionConfig(
            iso_tiers=[IsoTier(upper_bound=100, ceiling=0.1)],
            high_iso_ceiling=0.01,
        )
        assert select_velocity_ceiling(99, config) == 0.1
        assert select_velocity_ceiling(100, config) == 0.01

    def test_no_tiers_uses_high_iso_ceiling(self):
        config = MotionConfig(iso_tiers=[], high_iso_ceiling=0.007)
        assert select_velocity_ceiling(10, config) == 0.007


class TestAnalyzeMotion:
    def test_first_frame_is_never_stable(self):
        result = analyze_motion(ORIGIN, None, iso=100)
        assert result.stable is False
        assert result.needs_burst_safety_net is False
        assert result.ceiling == 0.04

    def test_still_subject_is_stable_without_burst(self):
        result = analyze_motion(nose_at(0.001), ORIGIN, iso=100)
        assert result.stable is True
        assert result.needs_burst_safety_net is False
        assert result.displacement == pytest.approx(0.001)

    @pytest.mark.parametrize("iso,ceiling", [(100, 0.04), (400, 0.02), (1600, 0.005)])
    def test_ceiling_is_inclusive(self, iso, ceiling):
        at = analyze_motion(nose_at(ceiling), ORIGIN, iso=iso)
        assert at.stable is True
        assert at.needs_burst_safety_net is True

        above = analyze_motion(nose_at(ceiling * 1.01), ORIGIN, iso=iso)
        assert above.stable is False
        assert above.needs_burst_safety_net is False

    def test_small_motion_threshold_is_exclusive(self):
        at = analyze_motion(nose_at(0.003), ORIGIN, iso=100)
        assert at.stable is True
        assert at.needs_burst_safety_net is False

        above = analyze_motion(nose_at(0.0031), ORIGIN, iso=100)
        assert above.stable is True
        assert above.needs_burst_safety_net is True

    def test_same_motion_judged_by_light(self):
        """A 0.01 move is fine in daylight but too much in low light."""
        bright = analyze_motion(nose_at(0.01), ORIGIN, iso=100)
        dark = analyze_motion(nose_at(0.01), ORIGIN, iso=3200)
        assert bright.stable is True
        assert dark.stable is False

    def test_diagonal_displacement(self):
        result = analyze_motion(Keypoint(0.03, 0.54), ORIGIN, iso=100)
        assert result.displacement == pytest.approx(0.05)
        assert result.stable is False
