"""ISO-aware nose motion analysis.

Sensor gain amplifies apparent keypoint jitter, so the same physical
motion is judged more strictly in low light: the velocity ceiling is
chosen from ISO tiers instead of a fixed pixel threshold.
"""

from typing import Optional

from pawmoment.config import MotionConfig
from pawmoment.types import Keypoint, MotionResult

_DEFAULT = MotionConfig()


def select_velocity_ceiling(iso: float, config: Optional[MotionConfig] = None) -> float:
    """Pick the per-frame displacement ceiling for a light level.

    Args:
        iso: Sensor gain / ISO reading.
        config: Tier definitions; defaults to :class:`MotionConfig`.

    Returns:
        Ceiling of the first tier with ``iso < upper_bound``, else the
        high-ISO ceiling.
    """
    cfg = config or _DEFAULT
    for tier in cfg.iso_tiers:
        if iso < tier.upper_bound:
            return tier.ceiling
    return cfg.high_iso_ceiling


def analyze_motion(
    current_nose: Keypoint,
    previous_nose: Optional[Keypoint],
    iso: float,
    config: Optional[MotionConfig] = None,
) -> MotionResult:
    """Classify nose motion between two consecutive frames.

    A displacement exactly equal to the ceiling counts as stable.

    Args:
        current_nose: Nose in the current frame.
        previous_nose: Nose in the previous frame, or None on the first
            frame of a scanning session.
        iso: Current light proxy.
        config: Motion thresholds.

    Returns:
        MotionResult; never stable without a previous position.
    """
    cfg = config or _DEFAULT
    ceiling = select_velocity_ceiling(iso, cfg)

    if previous_nose is None:
        return MotionResult(stable=False, needs_burst_safety_net=False, ceiling=ceiling)

    d = current_nose.distance_to(previous_nose)
    if d > ceiling:
        return MotionResult(stable=False, needs_burst_safety_net=False, displacement=d, ceiling=ceiling)

    return MotionResult(
        stable=True,
        needs_burst_safety_net=d > cfg.small_motion_threshold,
        displacement=d,
        ceiling=ceiling,
    )
