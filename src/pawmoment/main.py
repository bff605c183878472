"""High-level API for pawmoment.

    >>> import pawmoment as pm
    >>> result = pm.replay("session.jsonl")
    >>> print(f"{len(result.triggers)} triggers in {result.frame_count} frames")

Replay drives a :class:`TriggerEngine` from a keypoint log with a
simulated camera: capture commands resolve immediately to record indices,
and burst frames are re-scored from the logged keypoints on the calling
thread, so a replay is deterministic.
"""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from pawmoment.backends.replay import KeypointReplay
from pawmoment.config import BurstConfig, EngineConfig, StabilityConfig
from pawmoment.engine import EngineListener, InlineExecutor, TriggerEngine
from pawmoment.observability import ObservabilityHub
from pawmoment.types import QualityMode, TriggerDecision

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = StabilityConfig().cooldown_sec
DEFAULT_REQUIRED_FRAMES = StabilityConfig().required_frames
DEFAULT_BURST_SIZE = BurstConfig().target_count


@dataclass
class ReplayResult:
    """Result from pm.replay()."""

    triggers: List[TriggerDecision] = field(default_factory=list)
    selected_frames: List[int] = field(default_factory=list)
    frame_count: int = 0
    duration_sec: float = 0.0
    bursts: int = 0
    singles: int = 0


class _ReplayClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ReplayCaptureDevice:
    """Simulated camera over a keypoint log.

    Each capture resolves at once to a record index. Captures issued
    while the replay sits on one record return that record and the ones
    following it, so a burst covers consecutive frames.
    """

    def __init__(self, length: int):
        self._length = length
        self._position = 0
        self._offset = 0
        self.captures = 0

    def seek(self, position: int) -> None:
        self._position = position
        self._offset = 0

    def capture(self, mode: QualityMode) -> "Future[int]":
        future: "Future[int]" = Future()
        index = min(self._position + self._offset, self._length - 1)
        self._offset += 1
        self.captures += 1
        future.set_result(index)
        return future


class _ReplayListener(EngineListener):
    def __init__(
        self,
        result: ReplayResult,
        on_trigger: Optional[Callable[[TriggerDecision], None]],
        on_image: Optional[Callable[[Any], None]],
    ):
        self._result = result
        self._on_trigger = on_trigger
        self._on_image = on_image

    def on_trigger_decision(self, decision: TriggerDecision) -> None:
        self._result.triggers.append(decision)
        if decision.prefer_burst:
            self._result.bursts += 1
        else:
            self._result.singles += 1
        if self._on_trigger is not None:
            self._on_trigger(decision)

    def on_best_frame_selected(self, image: Any) -> None:
        self._result.selected_frames.append(image)
        if self._on_image is not None:
            self._on_image(image)


def replay(
    path: Union[str, Path],
    config: Optional[EngineConfig] = None,
    on_trigger: Optional[Callable[[TriggerDecision], None]] = None,
    on_image: Optional[Callable[[Any], None]] = None,
    hub: Optional[ObservabilityHub] = None,
) -> ReplayResult:
    """Replay a keypoint log through the trigger engine.

    Args:
        path: JSONL keypoint log (see :mod:`pawmoment.backends.replay`).
        config: Engine configuration. Defaults to :class:`EngineConfig`.
        on_trigger: Called with every trigger decision.
        on_image: Called with the record index of every selected frame.
        hub: Observability hub for trace output.

    Returns:
        ReplayResult with the fired triggers and selected frames.

    Example:
        >>> result = pm.replay("session.jsonl", config=create_default_config(cooldown_sec=3.0))
        >>> for trigger in result.triggers:
        ...     print(f"{trigger.timestamp:.2f}s burst={trigger.prefer_burst}")
    """
    log = KeypointReplay.from_file(path)
    result = ReplayResult(frame_count=len(log), duration_sec=log.duration_sec)
    if len(log) == 0:
        return result

    clock = _ReplayClock()
    device = ReplayCaptureDevice(len(log))
    listener = _ReplayListener(result, on_trigger, on_image)
    engine = TriggerEngine(
        detector=log,
        device=device,
        config=config,
        listener=listener,
        clock=clock,
        hub=hub,
        selection_executor=InlineExecutor(),
    )

    with engine:
        engine.start_scanning()
        for index, record in enumerate(log):
            clock.now = record.timestamp
            device.seek(index)
            engine.process_sample(record.sample, iso=record.iso, now=record.timestamp)

    logger.info(
        "Replayed %d frames (%.1fs): %d triggers, %d selected",
        result.frame_count, result.duration_sec, len(result.triggers), len(result.selected_frames),
    )
    return result
