"""Tests for the frontal-pose geometry check."""

import numpy as np
import pytest

from helpers import make_sample

from pawmoment.analyzers.geometry import (
    frontal_rejection_reason,
    has_confident_keypoints,
    is_frontal_pose,
)
from pawmoment.config import GeometryConfig
from pawmoment.types import Keypoint


class TestConfidence:
    def test_none_is_not_confident(self):
        assert has_confident_keypoints(None) is False

    def test_all_above_threshold(self):
        assert has_confident_keypoints(make_sample(conf=0.7)) is True

    def test_threshold_is_inclusive(self):
        assert has_confident_keypoints(make_sample(conf=0.6), min_confidence=0.6) is True

    def test_one_weak_keypoint_fails(self):
        sample = make_sample(conf=0.9)
        weak = type(sample)(
            left_eye=sample.left_eye,
            right_eye=Keypoint(sample.right_eye.x, sample.right_eye.y, 0.59),
            nose=sample.nose,
        )
        assert has_confident_keypoints(weak) is False


class TestFrontalPose:
    def test_upright_centered_face_is_frontal(self):
        s = make_sample()
        assert is_frontal_pose(s.left_eye, s.right_eye, s.nose) is True

    def test_nose_above_eyes_rejected(self):
        s = make_sample(nose_y=0.6, eye_y=0.55)
        assert frontal_rejection_reason(s.left_eye, s.right_eye, s.nose) == "vertical_order"

    def test_nose_level_with_eyes_rejected(self):
        s = make_sample(nose_y=0.55, eye_y=0.55)
        assert frontal_rejection_reason(s.left_eye, s.right_eye, s.nose) == "vertical_order"

    def test_nose_below_or_level_never_frontal_randomized(self):
        """nose.y >= mean eye y is never frontal, whatever the x layout."""
        rng = np.random.default_rng(42)
        for _ in range(500):
            left = Keypoint(rng.uniform(0, 1), rng.uniform(0, 1))
            right = Keypoint(rng.uniform(0, 1), rng.uniform(0, 1))
            eye_y = (left.y + right.y) / 2.0
            nose = Keypoint(rng.uniform(0, 1), eye_y + rng.uniform(0, 0.5))
            assert is_frontal_pose(left, right, nose) is False

    def test_profile_rejected_as_asymmetric(self):
        # eye distance 0.2, allowed offset 0.07
        s = make_sample(nose_x=0.58)
        assert frontal_rejection_reason(s.left_eye, s.right_eye, s.nose) == "asymmetric"

    def test_symmetry_boundary(self):
        config = GeometryConfig(symmetry_ratio=0.5)
        s = make_sample(nose_x=0.55)  # offset 0.05 <= 0.5 * 0.2
        assert is_frontal_pose(s.left_eye, s.right_eye, s.nose, config) is True

    def test_coincident_eyes_rejected(self):
        left = Keypoint(0.5, 0.55)
        right = Keypoint(0.5, 0.55)
        nose = Keypoint(0.5, 0.45)
        assert frontal_rejection_reason(left, right, nose) == "degenerate"

    def test_flattened_face_rejected(self):
        # eye-to-nose height 0.02 over eye distance 0.2 -> ratio 0.1
        s = make_sample(nose_y=0.53)
        assert frontal_rejection_reason(s.left_eye, s.right_eye, s.nose) == "aspect_ratio"

    def test_elongated_face_rejected(self):
        # height 0.4 over eye distance 0.2 -> ratio 2.0
        s = make_sample(nose_y=0.15)
        assert frontal_rejection_reason(s.left_eye, s.right_eye, s.nose) == "aspect_ratio"

    @pytest.mark.parametrize("nose_y", [0.50, 0.45, 0.30, 0.25])
    def test_plausible_heights_accepted(self, nose_y):
        s = make_sample(nose_y=nose_y)
        assert is_frontal_pose(s.left_eye, s.right_eye, s.nose) is True

    def test_image_coords_flip(self):
        """Top-left-origin keypoints are converted before the check."""
        left = Keypoint.from_image_coords(0.4, 0.45)
        right = Keypoint.from_image_coords(0.6, 0.45)
        nose = Keypoint.from_image_coords(0.5, 0.55)
        assert is_frontal_pose(left, right, nose) is True
