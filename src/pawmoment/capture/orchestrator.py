"""Capture orchestration: single shots, bursts and the one-burst lock.

On a trigger the orchestrator either issues one balanced-quality capture
or opens a :class:`BurstSession` and issues ``target_count``
speed-prioritized captures back to back. Burst completions arrive on the
device's own thread and are routed through ``dispatch`` so that session
mutation happens in the engine's serialization context.

A burst stops buffering once ``len(buffer) == expected_count``. Failed
captures decrement ``expected_count`` so the session never hangs; a burst
where every capture failed closes without running the selector. Otherwise
the buffered frames are handed to ``run_selection``, which re-detects them
outside the serialization context, then commits the session back through
``dispatch``. The session counts as active, and scanning stays disarmed,
until that commit. After it, scanning stays disarmed for
``rearm_delay_sec``.

Images (single shots and burst winners) are delivered outside
``dispatch``, on the thread that produced them.
"""

import logging
import time
from concurrent.futures import Future
from typing import Any, Callable, List, Optional

from pawmoment.backends.base import CaptureDevice
from pawmoment.config import BurstConfig
from pawmoment.scoring.burst_selector import BurstFrameSelector
from pawmoment.types import BurstSession, QualityMode

logger = logging.getLogger(__name__)


def _run_inline(fn: Callable[[], None]) -> None:
    fn()


class CaptureOrchestrator:
    """Drives the capture device in response to trigger decisions.

    Args:
        device: Capture collaborator returning futures.
        selector: Burst frame selector.
        burst: Burst size and re-arm delay.
        clock: Monotonic time source in seconds.
        dispatch: Runs a completion handler in the state-owning context.
            Defaults to calling it inline.
        run_selection: Runs burst frame selection, typically on a worker
            thread. Defaults to calling it inline.
        on_image: Receives the chosen image (single shot or burst winner).
        on_failure: Receives single-shot capture errors.
        on_burst_complete: Receives the closed session.

    Example:
        >>> orchestrator = CaptureOrchestrator(device, selector, on_image=save)
        >>> orchestrator.on_trigger(prefer_burst=True)
    """

    def __init__(
        self,
        device: CaptureDevice,
        selector: BurstFrameSelector,
        burst: Optional[BurstConfig] = None,
        clock: Optional[Callable[[], float]] = None,
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
        run_selection: Optional[Callable[[Callable[[], None]], None]] = None,
        on_image: Optional[Callable[[Any], None]] = None,
        on_failure: Optional[Callable[[BaseException], None]] = None,
        on_burst_complete: Optional[Callable[[BurstSession], None]] = None,
    ):
        self._device = device
        self._selector = selector
        self._burst = burst or BurstConfig()
        self._clock = clock or time.monotonic
        self._dispatch = dispatch or _run_inline
        self._run_selection = run_selection or _run_inline
        self._on_image = on_image
        self._on_failure = on_failure
        self._on_burst_complete = on_burst_complete

        self._session: Optional[BurstSession] = None
        self._rearm_at: Optional[float] = None
        self._bursts_completed = 0
        self._singles_issued = 0

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def on_trigger(self, prefer_burst: bool) -> bool:
        """Handle a trigger decision.

        Args:
            prefer_burst: Capture a burst and select the best frame.

        Returns:
            True if capture commands were issued, False if a burst is
            already active (no-op).
        """
        if self._session is not None:
            logger.debug("Trigger ignored: burst already active")
            return False

        if not prefer_burst:
            self.capture_single()
            return True

        self._start_burst()
        return True

    def capture_single(self, mode: QualityMode = QualityMode.BALANCED) -> None:
        """Issue one fire-and-forget capture."""
        self._singles_issued += 1
        try:
            future = self._device.capture(mode)
        except Exception as exc:
            self._handle_single_done(None, exc)
            return
        # No session state to touch, so the result is delivered directly.
        future.add_done_callback(lambda f: self._handle_single_done(f, None))

    def _start_burst(self) -> None:
        target = self._burst.target_count
        session = BurstSession(
            target_count=target,
            expected_count=target,
            started_at=self._clock(),
        )
        self._session = session
        logger.info("Burst started (%d frames)", target)

        for _ in range(target):
            try:
                future = self._device.capture(QualityMode.SPEED)
            except Exception as exc:
                self._handle_burst_done(session, None, exc)
                continue
            future.add_done_callback(
                lambda f, s=session: self._dispatch(lambda: self._handle_burst_done(s, f, None))
            )

    # ------------------------------------------------------------------
    # Completions
    # ------------------------------------------------------------------

    def _handle_single_done(self, future: Optional[Future], error: Optional[BaseException]) -> None:
        if error is None and future is not None:
            error = future.exception()
        if error is not None:
            logger.warning("Single capture failed: %s", error)
            if self._on_failure is not None:
                self._on_failure(error)
            return
        if self._on_image is not None:
            self._on_image(future.result())

    def _handle_burst_done(
        self,
        session: BurstSession,
        future: Optional[Future],
        error: Optional[BaseException],
    ) -> None:
        if session is not self._session or not session.is_active:
            logger.debug("Dropping completion for a closed burst")
            return

        if error is None and future is not None:
            error = future.exception()
        if error is not None:
            session.failures += 1
            session.expected_count -= 1
            logger.warning(
                "Burst capture failed (%d/%d failed): %s",
                session.failures, session.target_count, error,
            )
        else:
            session.buffer.append(future.result())

        if session.is_complete:
            self._finish_burst(session)

    def _finish_burst(self, session: BurstSession) -> None:
        session.is_active = False
        frames = list(session.buffer)
        session.buffer.clear()

        if not frames:
            logger.warning("Burst closed with no frames (%d failed)", session.failures)
            self._commit_burst(session)
            return
        self._run_selection(lambda: self._select_and_deliver(session, frames))

    def _select_and_deliver(self, session: BurstSession, frames: List[Any]) -> None:
        """Score the burst outside the serialization context."""
        try:
            best = self._selector.select_best(frames)
        except Exception:
            logger.exception("Burst selection failed, using most recent frame")
            best = frames[-1]

        committed: List[bool] = []
        self._dispatch(lambda: committed.append(self._commit_burst(session)))
        if not committed or not committed[0]:
            logger.debug("Dropping selection for an abandoned burst")
            return

        logger.info("Burst complete: %d frames, %d failed", len(frames), session.failures)
        if self._on_image is not None:
            self._on_image(best)

    def _commit_burst(self, session: BurstSession) -> bool:
        if session is not self._session:
            return False
        self._session = None
        self._bursts_completed += 1
        self._rearm_at = self._clock() + self._burst.rearm_delay_sec
        if self._on_burst_complete is not None:
            self._on_burst_complete(session)
        return True

    # ------------------------------------------------------------------
    # Arming
    # ------------------------------------------------------------------

    def is_armed(self, now: float) -> bool:
        """Whether scanning may run: no burst active and re-arm delay elapsed."""
        if self._session is not None:
            return False
        return self._rearm_at is None or now >= self._rearm_at

    def take_rearm(self, now: float) -> bool:
        """Return True once when a pending re-arm deadline has passed."""
        if self._session is None and self._rearm_at is not None and now >= self._rearm_at:
            self._rearm_at = None
            return True
        return False

    def reset(self) -> None:
        """Abandon any active burst; late completions are dropped."""
        if self._session is not None:
            self._session.is_active = False
        self._session = None
        self._rearm_at = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_burst_active(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Optional[BurstSession]:
        return self._session

    @property
    def bursts_completed(self) -> int:
        return self._bursts_completed

    @property
    def singles_issued(self) -> int:
        return self._singles_issued
