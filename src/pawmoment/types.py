"""Pawmoment data types.

Coordinates are normalized to [0, 1] with the origin at the bottom-left
corner and ``y`` growing upward, so on an upright face the eyes have a
larger ``y`` than the nose.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass(frozen=True)
class Keypoint:
    """A single detected landmark (eye, nose) with confidence."""

    x: float
    y: float
    confidence: float = 1.0

    @classmethod
    def from_image_coords(cls, x: float, y: float, confidence: float = 1.0) -> Keypoint:
        """Build a keypoint from top-left-origin normalized coordinates."""
        return cls(x=float(x), y=1.0 - float(y), confidence=float(confidence))

    def distance_to(self, other: Keypoint) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class PoseSample:
    """Eye/nose keypoints for one analyzed frame.

    Attributes:
        left_eye: Left eye keypoint.
        right_eye: Right eye keypoint.
        nose: Nose keypoint.
        timestamp: Frame time in seconds (monotonic clock).
    """

    left_eye: Keypoint
    right_eye: Keypoint
    nose: Keypoint
    timestamp: float = 0.0

    @property
    def min_confidence(self) -> float:
        return min(self.left_eye.confidence, self.right_eye.confidence, self.nose.confidence)

    @property
    def confidence_sum(self) -> float:
        return self.left_eye.confidence + self.right_eye.confidence + self.nose.confidence


@dataclass
class MotionContext:
    """Per-session motion memory, mutated once per analyzed frame."""

    previous_nose: Optional[Keypoint] = None
    light_level: float = 0.0

    def clear(self) -> None:
        self.previous_nose = None


@dataclass(frozen=True)
class MotionResult:
    """Outcome of motion analysis for a single frame.

    Attributes:
        stable: Nose displacement is within the ISO-dependent ceiling.
        needs_burst_safety_net: Stable, but with enough micro-motion
            that a burst-and-select capture is preferred.
        displacement: Euclidean nose displacement (normalized units).
        ceiling: Velocity ceiling selected for the light level.
    """

    stable: bool
    needs_burst_safety_net: bool
    displacement: float = 0.0
    ceiling: float = 0.0


class DebouncerState(enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    ACCUMULATING = "accumulating"
    COOLDOWN = "cooldown"


class StreakResetPolicy(enum.Enum):
    """How a disqualifying frame affects the stability streak."""

    RESET = "reset"  # streak = 0
    DECAY = "decay"  # streak = max(0, streak - 1)

    @classmethod
    def from_string(cls, value: str) -> StreakResetPolicy:
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown streak reset policy: {value!r} (valid: {valid})")


@dataclass
class StabilityState:
    consecutive_frames: int = 0
    last_trigger_time: Optional[float] = None
    is_scanning: bool = False


@dataclass(frozen=True)
class TriggerDecision:
    """Emitted by the debouncer when the shutter should fire."""

    prefer_burst: bool
    timestamp: float
    streak: int = 0
    displacement: float = 0.0


class QualityMode(enum.Enum):
    """Capture settings hint passed to the capture device."""

    SPEED = "speed"
    BALANCED = "balanced"


@dataclass
class BurstSession:
    """A multi-frame capture in progress.

    ``expected_count`` starts at ``target_count`` and is decremented for
    every failed capture, so the session always completes.
    """

    target_count: int = 4
    expected_count: int = 4
    buffer: List[Any] = field(default_factory=list)
    failures: int = 0
    started_at: float = 0.0
    is_active: bool = True

    @property
    def is_complete(self) -> bool:
        return len(self.buffer) >= self.expected_count


@dataclass(frozen=True)
class ScoredFrame:
    """A burst frame with its selection score."""

    image: Any
    score: float
    index: int


@dataclass(frozen=True)
class FaceFeatures:
    """Per-frame detection summary for live overlays."""

    is_detected: bool
    is_looking_at_camera: bool
    left_eye: Keypoint
    right_eye: Keypoint
    nose: Keypoint

    @classmethod
    def from_sample(cls, sample: PoseSample, looking: bool) -> FaceFeatures:
        return cls(
            is_detected=True,
            is_looking_at_camera=looking,
            left_eye=sample.left_eye,
            right_eye=sample.right_eye,
            nose=sample.nose,
        )
