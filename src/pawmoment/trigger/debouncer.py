"""Stability debouncer: turns per-frame verdicts into trigger instants.

Rules:
- A frame qualifies when the keypoints are confident, the pose is
  frontal and nose motion is stable.
- A disqualifying frame resets the streak according to the configured
  :class:`StreakResetPolicy` (the same policy on every failing path).
- While the cooldown after a trigger is open the streak is frozen.
- Outside cooldown, reaching ``required_frames`` fires a
  :class:`TriggerDecision` and the streak restarts from zero.

Frames must be fed strictly in arrival order; the streak is defined over
consecutive frames.
"""

import logging
from typing import Optional

from pawmoment.analyzers.geometry import frontal_rejection_reason, has_confident_keypoints
from pawmoment.analyzers.motion import analyze_motion
from pawmoment.config import GeometryConfig, MotionConfig, StabilityConfig
from pawmoment.types import (
    DebouncerState,
    MotionContext,
    MotionResult,
    PoseSample,
    StabilityState,
    StreakResetPolicy,
    TriggerDecision,
)

logger = logging.getLogger(__name__)


class StabilityDebouncer:
    """Consecutive-frame trigger with cooldown.

    Args:
        stability: Streak length, cooldown and reset policy.
        geometry: Frontal-pose thresholds.
        motion: ISO-tiered motion thresholds.

    Example:
        >>> debouncer = StabilityDebouncer()
        >>> debouncer.set_scanning(True)
        >>> decision = debouncer.update(sample, iso=100.0, now=sample.timestamp)
        >>> if decision:
        ...     print(f"Trigger! burst={decision.prefer_burst}")
    """

    def __init__(
        self,
        stability: Optional[StabilityConfig] = None,
        geometry: Optional[GeometryConfig] = None,
        motion: Optional[MotionConfig] = None,
    ):
        self._stability = stability or StabilityConfig()
        self._geometry = geometry or GeometryConfig()
        self._motion = motion or MotionConfig()

        self._state = StabilityState()
        self._context = MotionContext()
        self._last_motion: Optional[MotionResult] = None
        self._last_reason: str = "idle"
        self._last_looking: bool = False
        self._last_now: Optional[float] = None

    # ------------------------------------------------------------------
    # Scanning lifecycle
    # ------------------------------------------------------------------

    def set_scanning(self, scanning: bool) -> None:
        """Start or stop scanning. Both directions clear streak and motion memory."""
        self._state.is_scanning = bool(scanning)
        self._state.consecutive_frames = 0
        self._context.clear()
        self._last_motion = None
        self._last_reason = "scanning" if scanning else "idle"

    def rearm(self) -> None:
        """Resume after a capture session without forgetting the cooldown."""
        self._state.consecutive_frames = 0
        self._context.clear()
        self._last_motion = None

    def reset(self) -> None:
        """Reset all state, including the cooldown timestamp."""
        self._state = StabilityState()
        self._context = MotionContext()
        self._last_motion = None
        self._last_reason = "idle"
        self._last_now = None

    # ------------------------------------------------------------------
    # Per-frame update
    # ------------------------------------------------------------------

    def update(
        self,
        sample: Optional[PoseSample],
        iso: float,
        now: float,
    ) -> Optional[TriggerDecision]:
        """Process one analyzed frame.

        Args:
            sample: Detected keypoints, or None if nothing was detected.
            iso: Current light proxy.
            now: Frame time in seconds.

        Returns:
            TriggerDecision when the shutter should fire, else None.
        """
        if not self._state.is_scanning:
            self._last_reason = "idle"
            return None

        self._last_now = now
        self._context.light_level = float(iso)
        self._last_looking = False

        if not has_confident_keypoints(sample, self._geometry.min_confidence):
            self._context.clear()
            self._last_motion = None
            self._disqualify("no_detection")
            return None

        motion = analyze_motion(sample.nose, self._context.previous_nose, iso, self._motion)
        self._context.previous_nose = sample.nose
        self._last_motion = motion

        rejection = frontal_rejection_reason(
            sample.left_eye, sample.right_eye, sample.nose, self._geometry
        )
        self._last_looking = rejection is None
        if rejection is not None:
            self._disqualify(rejection)
            return None

        if not motion.stable:
            self._disqualify("unstable")
            return None

        if self._in_cooldown(now):
            self._last_reason = "cooldown"
            return None

        self._state.consecutive_frames += 1
        if self._state.consecutive_frames < self._stability.required_frames:
            self._last_reason = "accumulating"
            logger.debug(
                "Qualifying frame %d/%d (d=%.4f, ceiling=%.4f)",
                self._state.consecutive_frames, self._stability.required_frames,
                motion.displacement, motion.ceiling,
            )
            return None

        decision = TriggerDecision(
            prefer_burst=motion.needs_burst_safety_net,
            timestamp=now,
            streak=self._state.consecutive_frames,
            displacement=motion.displacement,
        )
        self._state.consecutive_frames = 0
        self._state.last_trigger_time = now
        self._last_reason = "triggered"
        logger.info(
            "Trigger at t=%.3f (burst=%s, d=%.4f)",
            now, decision.prefer_burst, motion.displacement,
        )
        return decision

    def _disqualify(self, reason: str) -> None:
        if self._stability.reset_policy is StreakResetPolicy.DECAY:
            self._state.consecutive_frames = max(0, self._state.consecutive_frames - 1)
        else:
            self._state.consecutive_frames = 0
        self._last_reason = reason

    def _in_cooldown(self, now: float) -> bool:
        last = self._state.last_trigger_time
        if last is None:
            return False
        return now - last < self._stability.cooldown_sec

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> DebouncerState:
        if not self._state.is_scanning:
            return DebouncerState.IDLE
        if self._last_now is not None and self._in_cooldown(self._last_now):
            return DebouncerState.COOLDOWN
        if self._state.consecutive_frames > 0:
            return DebouncerState.ACCUMULATING
        return DebouncerState.SCANNING

    @property
    def is_scanning(self) -> bool:
        return self._state.is_scanning

    @property
    def consecutive_frames(self) -> int:
        return self._state.consecutive_frames

    @property
    def last_trigger_time(self) -> Optional[float]:
        return self._state.last_trigger_time

    @property
    def previous_nose(self):
        return self._context.previous_nose

    @property
    def last_motion(self) -> Optional[MotionResult]:
        return self._last_motion

    @property
    def last_reason(self) -> str:
        """Why the last frame did or did not advance the streak."""
        return self._last_reason

    @property
    def last_looking(self) -> bool:
        """Whether the last confident frame passed the frontal check."""
        return self._last_looking

    @property
    def required_frames(self) -> int:
        return self._stability.required_frames
