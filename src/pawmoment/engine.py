"""Trigger engine: the single state-owning context of pawmoment.

The engine wires the pure analyzers, the stability debouncer, the capture
orchestrator and the burst selector together, and owns the one lock that
serializes every mutation of shared state::

    submit_frame(frame)            # camera thread, never blocks
        -> detector.detect(frame)  # analysis worker, one frame in flight
        -> _commit(...)            # under lock: debouncer -> orchestrator
    capture future completes       # device thread
        -> _dispatch(handler)      # under lock: burst session bookkeeping
    burst buffer full
        -> select_best(frames)     # selection worker, outside the lock
        -> _dispatch(commit)       # under lock: close session, schedule re-arm
        -> on_best_frame_selected  # selection worker, outside the lock

A frame that arrives while the previous one is still being analyzed is
dropped, not queued. Results are committed only if the scanning session
they were submitted in is still current, so stopping scanning suppresses
late analysis results.
"""

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from pawmoment.backends.base import CaptureDevice, LightMeter, PoseDetector
from pawmoment.capture.orchestrator import CaptureOrchestrator
from pawmoment.config import EngineConfig
from pawmoment.observability import ObservabilityHub
from pawmoment.observability.records import (
    BurstCompleteRecord,
    CaptureFailureRecord,
    FrameDecisionRecord,
    FrameDropRecord,
    ScanningChangeRecord,
    TriggerFireRecord,
)
from pawmoment.scoring.burst_selector import BurstFrameSelector
from pawmoment.trigger.debouncer import StabilityDebouncer
from pawmoment.types import (
    BurstSession,
    DebouncerState,
    FaceFeatures,
    PoseSample,
    TriggerDecision,
)

logger = logging.getLogger(__name__)


class InlineExecutor(Executor):
    """Executor that runs submitted work on the calling thread."""

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class EngineListener:
    """Hooks exposed to the UI and persistence layers.

    All methods are no-ops; override the ones you need. Scanning, trigger
    and feature hooks are called while the engine lock is held, so they
    must return quickly. ``on_best_frame_selected`` and
    ``on_capture_failed`` are called outside the lock, from the capture or
    selection thread, and may do I/O.
    """

    def on_scanning_changed(self, scanning: bool) -> None:
        pass

    def on_trigger_decision(self, decision: TriggerDecision) -> None:
        pass

    def on_best_frame_selected(self, image: Any) -> None:
        pass

    def on_features_detected(self, features: Optional[FaceFeatures]) -> None:
        pass

    def on_capture_failed(self, error: BaseException) -> None:
        pass


@dataclass
class EngineStats:
    """Counters collected by the engine."""

    frames_submitted: int = 0
    frames_dropped: int = 0
    frames_analyzed: int = 0
    frames_discarded: int = 0
    triggers_fired: int = 0
    triggers_ignored: int = 0
    bursts_completed: int = 0
    captures_failed: int = 0
    images_selected: int = 0


class TriggerEngine:
    """Real-time shutter trigger for pet photography.

    Args:
        detector: Pose detector for live frames and burst re-detection.
        device: Capture device.
        light_meter: ISO source. Without one, ISO 0 (brightest tier) is used.
        config: Engine configuration.
        listener: UI/persistence hooks.
        clock: Monotonic time source in seconds.
        hub: Observability hub; defaults to the process-wide instance.
        executor: Executor for frame analysis. A single-worker pool is
            created (and owned) when omitted.
        selection_executor: Executor for burst re-detection and image
            delivery. A single-worker pool is created (and owned) when
            omitted.

    Example:
        >>> engine = TriggerEngine(detector, camera, light_meter=camera)
        >>> engine.start_scanning()
        >>> for frame in frames:
        ...     engine.submit_frame(frame)
        >>> engine.close()
    """

    def __init__(
        self,
        detector: PoseDetector,
        device: CaptureDevice,
        light_meter: Optional[LightMeter] = None,
        config: Optional[EngineConfig] = None,
        listener: Optional[EngineListener] = None,
        clock: Optional[Callable[[], float]] = None,
        hub: Optional[ObservabilityHub] = None,
        executor: Optional[Executor] = None,
        selection_executor: Optional[Executor] = None,
    ):
        self._config = (config or EngineConfig()).validate()
        self._detector = detector
        self._light_meter = light_meter
        self._listener = listener or EngineListener()
        self._clock = clock or time.monotonic
        self._hub = hub or ObservabilityHub.get_instance()

        self._lock = threading.RLock()
        self._executor = executor
        self._owns_executor = executor is None
        self._selection_executor = selection_executor
        self._owns_selection_executor = selection_executor is None
        self._in_flight = False
        self._generation = 0
        self._auto_mode = self._config.auto_mode
        self._closed = False
        self.stats = EngineStats()

        self._debouncer = StabilityDebouncer(
            stability=self._config.stability,
            geometry=self._config.geometry,
            motion=self._config.motion,
        )
        self._selector = BurstFrameSelector(
            detector, burst=self._config.burst, geometry=self._config.geometry,
        )
        self._orchestrator = CaptureOrchestrator(
            device,
            self._selector,
            burst=self._config.burst,
            clock=self._clock,
            dispatch=self._dispatch,
            run_selection=self._run_selection,
            on_image=self._handle_image,
            on_failure=self._handle_capture_failure,
            on_burst_complete=self._handle_burst_complete,
        )

    # ------------------------------------------------------------------
    # Scanning / shutter
    # ------------------------------------------------------------------

    def set_scanning(self, scanning: bool) -> None:
        """Start or stop scanning.

        Both directions reset the streak and motion memory and invalidate
        in-flight analysis. Starting also clears any burst session.
        """
        with self._lock:
            changed = scanning != self._debouncer.is_scanning
            self._generation += 1
            self._debouncer.set_scanning(scanning)
            if scanning:
                self._orchestrator.reset()

            if not changed:
                return
            logger.info("Scanning %s", "started" if scanning else "stopped")
            self._emit(ScanningChangeRecord(scanning=scanning))
            self._notify("on_scanning_changed", scanning)
            if not scanning:
                self._notify("on_features_detected", None)

    def start_scanning(self) -> None:
        self.set_scanning(True)

    def stop_scanning(self) -> None:
        self.set_scanning(False)

    def set_auto_mode(self, enabled: bool) -> None:
        """Switch between automatic triggering and manual shutter."""
        with self._lock:
            self._auto_mode = bool(enabled)
            if not enabled and self._debouncer.is_scanning:
                self.set_scanning(False)

    def handle_shutter_press(self) -> None:
        """Shutter button: toggles scanning in auto mode, captures otherwise."""
        with self._lock:
            if self._auto_mode:
                self.set_scanning(not self._debouncer.is_scanning)
            else:
                self._orchestrator.capture_single()

    # ------------------------------------------------------------------
    # Frame input
    # ------------------------------------------------------------------

    def submit_frame(self, frame: Any) -> bool:
        """Queue a camera frame for analysis without blocking.

        Returns:
            True if the frame was accepted, False if it was dropped
            (not scanning, engine closed, or analysis still in flight).
        """
        with self._lock:
            if self._closed or not self._debouncer.is_scanning:
                return False
            self.stats.frames_submitted += 1
            now = self._clock()
            if not self._orchestrator.is_armed(now):
                return False
            if self._in_flight:
                self.stats.frames_dropped += 1
                self._emit(FrameDropRecord(t_sec=now, dropped_total=self.stats.frames_dropped))
                return False
            self._in_flight = True
            generation = self._generation
            iso = self._read_iso()
            executor = self._get_executor()

        try:
            executor.submit(self._analyze, frame, generation, iso, now)
        except RuntimeError:
            with self._lock:
                self._in_flight = False
            raise
        return True

    def _analyze(self, frame: Any, generation: int, iso: float, now: float) -> None:
        try:
            try:
                sample = self._detector.detect(frame)
            except Exception as exc:
                logger.warning("Pose detection failed: %s", exc)
                sample = None
            if sample is not None:
                sample = replace(sample, timestamp=now)
            with self._lock:
                self._commit(generation, sample, iso, now)
        except Exception:
            logger.exception("Frame analysis failed")
        finally:
            with self._lock:
                self._in_flight = False

    def process_sample(
        self,
        sample: Optional[PoseSample],
        iso: Optional[float] = None,
        now: Optional[float] = None,
    ) -> Optional[TriggerDecision]:
        """Synchronously feed one already-detected sample.

        Args:
            sample: Keypoints, or None for "no detection".
            iso: Light proxy; read from the light meter when omitted.
            now: Frame time; the engine clock when omitted.

        Returns:
            The trigger decision fired by this frame, if any. Always None
            once the engine is closed.
        """
        with self._lock:
            if self._closed:
                return None
            if now is None:
                now = self._clock()
            if iso is None:
                iso = self._read_iso()
            self.stats.frames_submitted += 1
            return self._commit(self._generation, sample, iso, now)

    def _commit(
        self,
        generation: int,
        sample: Optional[PoseSample],
        iso: float,
        now: float,
    ) -> Optional[TriggerDecision]:
        if generation != self._generation or not self._debouncer.is_scanning:
            self.stats.frames_discarded += 1
            logger.debug("Discarding result from a stale scanning session")
            return None

        if not self._orchestrator.is_armed(now):
            self._emit(FrameDecisionRecord(t_sec=now, decision="disarmed", iso=iso))
            return None
        if self._orchestrator.take_rearm(now):
            logger.debug("Scanning re-armed after burst")
            self._debouncer.rearm()

        self.stats.frames_analyzed += 1
        decision = self._debouncer.update(sample, iso, now)

        if self._debouncer.last_reason == "no_detection":
            self._notify("on_features_detected", None)
        else:
            self._notify(
                "on_features_detected",
                FaceFeatures.from_sample(sample, self._debouncer.last_looking),
            )

        if self._hub.enabled:
            motion = self._debouncer.last_motion
            self._emit(FrameDecisionRecord(
                t_sec=now,
                decision=self._debouncer.last_reason,
                consecutive_count=self._debouncer.consecutive_frames,
                consecutive_required=self._debouncer.required_frames,
                displacement=motion.displacement if motion else 0.0,
                ceiling=motion.ceiling if motion else 0.0,
                iso=iso,
            ))

        if decision is None:
            return None

        self.stats.triggers_fired += 1
        self._notify("on_trigger_decision", decision)
        accepted = self._orchestrator.on_trigger(decision.prefer_burst)
        if not accepted:
            self.stats.triggers_ignored += 1
        self._emit(TriggerFireRecord(
            t_sec=now,
            prefer_burst=decision.prefer_burst,
            streak=decision.streak,
            displacement=decision.displacement,
            accepted=accepted,
        ))
        return decision

    # ------------------------------------------------------------------
    # Capture completions
    # ------------------------------------------------------------------

    def _dispatch(self, fn: Callable[[], None]) -> None:
        with self._lock:
            try:
                fn()
            except Exception:
                logger.exception("Capture completion handler failed")

    def _run_selection(self, fn: Callable[[], None]) -> None:
        if self._closed:
            logger.warning("Engine closed, dropping burst selection")
            return
        try:
            self._get_selection_executor().submit(self._select_safely, fn)
        except RuntimeError:
            # Executor shut down by a concurrent close().
            logger.warning("Engine closed, dropping burst selection")

    @staticmethod
    def _select_safely(fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception:
            logger.exception("Burst selection failed")

    # The two handlers below run outside the lock; only counters take it.

    def _handle_image(self, image: Any) -> None:
        with self._lock:
            self.stats.images_selected += 1
        self._notify("on_best_frame_selected", image)

    def _handle_capture_failure(self, error: BaseException) -> None:
        with self._lock:
            self.stats.captures_failed += 1
            self._emit(CaptureFailureRecord(error=str(error)))
        self._notify("on_capture_failed", error)

    def _handle_burst_complete(self, session: BurstSession) -> None:
        self.stats.bursts_completed += 1
        self.stats.captures_failed += session.failures
        self._emit(BurstCompleteRecord(
            target_count=session.target_count,
            frames=session.expected_count,
            failures=session.failures,
            duration_sec=max(0.0, self._clock() - session.started_at),
        ))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read_iso(self) -> float:
        if self._light_meter is None:
            return 0.0
        try:
            return float(self._light_meter.current_light_proxy())
        except Exception as exc:
            logger.warning("Light meter read failed, assuming bright scene: %s", exc)
            return 0.0

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="pawmoment-analysis",
            )
        return self._executor

    def _get_selection_executor(self) -> Executor:
        with self._lock:
            if self._selection_executor is None:
                self._selection_executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="pawmoment-selection",
                )
            return self._selection_executor

    def _notify(self, name: str, *args: Any) -> None:
        try:
            getattr(self._listener, name)(*args)
        except Exception:
            logger.exception("Listener %s raised", name)

    def _emit(self, record) -> None:
        if self._hub.enabled:
            self._hub.emit(record)

    # ------------------------------------------------------------------
    # Lifecycle / introspection
    # ------------------------------------------------------------------

    def close(self, wait: bool = True) -> None:
        """Stop scanning and release the analysis and selection executors."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._debouncer.is_scanning:
                self.set_scanning(False)
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=wait)
        if self._owns_selection_executor and self._selection_executor is not None:
            self._selection_executor.shutdown(wait=wait)

    def __enter__(self) -> "TriggerEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def is_scanning(self) -> bool:
        return self._debouncer.is_scanning

    @property
    def auto_mode(self) -> bool:
        return self._auto_mode

    @property
    def state(self) -> DebouncerState:
        return self._debouncer.state

    @property
    def is_burst_active(self) -> bool:
        return self._orchestrator.is_burst_active

    @property
    def is_analysis_in_flight(self) -> bool:
        return self._in_flight

    @property
    def debouncer(self) -> StabilityDebouncer:
        return self._debouncer

    @property
    def orchestrator(self) -> CaptureOrchestrator:
        return self._orchestrator

    @property
    def config(self) -> EngineConfig:
        return self._config
