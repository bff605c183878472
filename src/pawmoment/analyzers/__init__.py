"""Pure per-frame analyzers: frontal geometry and ISO-aware motion."""

from pawmoment.analyzers.geometry import (
    frontal_rejection_reason,
    has_confident_keypoints,
    is_frontal_pose,
)
from pawmoment.analyzers.motion import analyze_motion, select_velocity_ceiling

__all__ = [
    "is_frontal_pose",
    "frontal_rejection_reason",
    "has_confident_keypoints",
    "analyze_motion",
    "select_velocity_ceiling",
]
