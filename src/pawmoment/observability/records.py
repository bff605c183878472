"""Trace record data classes for the trigger engine.

Record Categories:
- Frame records: per-frame streak decisions and dropped frames
- Trigger records: trigger firings
- Capture records: burst completion and capture failures
- Session records: scanning start/stop
"""

from dataclasses import dataclass, field

from pawmoment.observability.hub import TraceLevel, TraceRecord


# =============================================================================
# Frame Records
# =============================================================================


@dataclass
class FrameDecisionRecord(TraceRecord):
    """Streak decision for one analyzed frame (VERBOSE level)."""

    record_type: str = field(default="frame_decision", init=False)
    min_level: TraceLevel = field(default=TraceLevel.VERBOSE, repr=False, init=False)

    t_sec: float = 0.0
    # "triggered", "accumulating", "cooldown", "no_detection", "vertical_order",
    # "asymmetric", "degenerate", "aspect_ratio", "unstable", "disarmed"
    decision: str = ""
    consecutive_count: int = 0
    consecutive_required: int = 2
    displacement: float = 0.0
    ceiling: float = 0.0
    iso: float = 0.0


@dataclass
class FrameDropRecord(TraceRecord):
    """Frame dropped because analysis of an earlier frame was in flight."""

    record_type: str = field(default="frame_drop", init=False)

    t_sec: float = 0.0
    dropped_total: int = 0


# =============================================================================
# Trigger Records
# =============================================================================


@dataclass
class TriggerFireRecord(TraceRecord):
    """Trigger fired. Always emitted at MINIMAL level."""

    record_type: str = field(default="trigger_fire", init=False)
    min_level: TraceLevel = field(default=TraceLevel.MINIMAL, repr=False, init=False)

    t_sec: float = 0.0
    prefer_burst: bool = False
    streak: int = 0
    displacement: float = 0.0
    accepted: bool = True


# =============================================================================
# Capture Records
# =============================================================================


@dataclass
class BurstCompleteRecord(TraceRecord):
    record_type: str = field(default="burst_complete", init=False)
    min_level: TraceLevel = field(default=TraceLevel.MINIMAL, repr=False, init=False)

    target_count: int = 0
    frames: int = 0
    failures: int = 0
    duration_sec: float = 0.0


@dataclass
class CaptureFailureRecord(TraceRecord):
    record_type: str = field(default="capture_failure", init=False)
    min_level: TraceLevel = field(default=TraceLevel.MINIMAL, repr=False, init=False)

    error: str = ""


# =============================================================================
# Session Records
# =============================================================================


@dataclass
class ScanningChangeRecord(TraceRecord):
    record_type: str = field(default="scanning_change", init=False)

    scanning: bool = False
