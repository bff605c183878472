"""Frontal-pose geometry check.

Decides from the two eyes and the nose whether the subject is facing the
camera. The check is three ordered gates; the first failing gate rejects:

1. Vertical ordering - eyes above nose (rejects back-of-head / upside-down).
2. Horizontal symmetry - nose near the eye midpoint (rejects profiles).
3. Aspect ratio - eye-to-nose height vs eye spacing (rejects degenerate
   detections such as coincident eyes or extreme pitch).
"""

from typing import Optional

from pawmoment.config import GeometryConfig
from pawmoment.types import Keypoint, PoseSample

_DEFAULT = GeometryConfig()


def has_confident_keypoints(
    sample: Optional[PoseSample],
    min_confidence: float = _DEFAULT.min_confidence,
) -> bool:
    """Whether all three keypoints reach ``min_confidence``.

    Frames that fail this must be treated as "no detection" and never
    passed to :func:`is_frontal_pose`.
    """
    if sample is None:
        return False
    return sample.min_confidence >= min_confidence


def frontal_rejection_reason(
    left_eye: Keypoint,
    right_eye: Keypoint,
    nose: Keypoint,
    config: Optional[GeometryConfig] = None,
) -> Optional[str]:
    """Return the name of the first failing gate, or None if frontal."""
    cfg = config or _DEFAULT

    eye_y = (left_eye.y + right_eye.y) / 2.0
    if not eye_y > nose.y:
        return "vertical_order"

    eye_distance = abs(left_eye.x - right_eye.x)
    eye_mid_x = (left_eye.x + right_eye.x) / 2.0
    if abs(eye_mid_x - nose.x) > cfg.symmetry_ratio * eye_distance:
        return "asymmetric"

    if eye_distance <= 0.0:
        return "degenerate"
    ratio = (eye_y - nose.y) / eye_distance
    if ratio < cfg.min_aspect_ratio or ratio > cfg.max_aspect_ratio:
        return "aspect_ratio"

    return None


def is_frontal_pose(
    left_eye: Keypoint,
    right_eye: Keypoint,
    nose: Keypoint,
    config: Optional[GeometryConfig] = None,
) -> bool:
    """Check whether the subject is frontal / looking at the camera.

    Args:
        left_eye: Left eye keypoint (already confidence-filtered).
        right_eye: Right eye keypoint (already confidence-filtered).
        nose: Nose keypoint (already confidence-filtered).
        config: Thresholds; defaults to :class:`GeometryConfig`.

    Returns:
        True if all three gates pass.
    """
    return frontal_rejection_reason(left_eye, right_eye, nose, config) is None
