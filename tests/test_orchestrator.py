"""Tests for capture orchestration (single shots, bursts, re-arm)."""

from unittest.mock import Mock, patch

import pytest

from helpers import FakeCaptureDevice, FakeClock, StubDetector, make_sample

from pawmoment.capture import CaptureOrchestrator
from pawmoment.config import BurstConfig
from pawmoment.scoring import BurstFrameSelector
from pawmoment.types import QualityMode


@pytest.fixture
def clock():
    return FakeClock(start=10.0)


@pytest.fixture
def images():
    return []


@pytest.fixture
def failures():
    return []


@pytest.fixture
def sessions():
    return []


def make_orchestrator(device, clock, images, failures, sessions, detector=None, **burst):
    selector = BurstFrameSelector(detector or StubDetector())
    return CaptureOrchestrator(
        device,
        selector,
        burst=BurstConfig(**burst),
        clock=clock,
        on_image=images.append,
        on_failure=failures.append,
        on_burst_complete=sessions.append,
    )


@pytest.fixture
def orchestrator(device, clock, images, failures, sessions):
    return make_orchestrator(device, clock, images, failures, sessions)


class TestSingleShot:
    def test_single_issues_one_balanced_capture(self, orchestrator, device, images):
        assert orchestrator.on_trigger(prefer_burst=False) is True
        assert device.commands == [QualityMode.BALANCED]
        device.resolve(0, image="photo")
        assert images == ["photo"]
        assert orchestrator.is_burst_active is False

    def test_single_failure_reported(self, orchestrator, device, images, failures):
        orchestrator.on_trigger(prefer_burst=False)
        device.fail(0)
        assert images == []
        assert len(failures) == 1

    def test_synchronous_capture_error_reported(self, orchestrator, device, failures):
        device.raise_on_capture = RuntimeError("camera gone")
        orchestrator.capture_single()
        assert [str(e) for e in failures] == ["camera gone"]

    def test_single_does_not_disarm(self, orchestrator, device, clock):
        orchestrator.on_trigger(prefer_burst=False)
        assert orchestrator.is_armed(clock()) is True


class TestBurst:
    def test_burst_issues_target_speed_captures(self, orchestrator, device):
        assert orchestrator.on_trigger(prefer_burst=True) is True
        assert device.commands == [QualityMode.SPEED] * 4
        assert orchestrator.is_burst_active is True
        assert orchestrator.session.expected_count == 4

    def test_at_most_one_burst(self, orchestrator, device):
        orchestrator.on_trigger(prefer_burst=True)
        assert orchestrator.on_trigger(prefer_burst=True) is False
        assert orchestrator.on_trigger(prefer_burst=False) is False
        assert len(device.commands) == 4

    def test_burst_completes_with_best_frame(self, device, clock, images, failures, sessions):
        detector = StubDetector({
            "a": make_sample(conf=0.7),
            "b": make_sample(conf=0.95),
            "c": make_sample(conf=0.8),
            "d": None,
        })
        orchestrator = make_orchestrator(device, clock, images, failures, sessions, detector=detector)
        orchestrator.on_trigger(prefer_burst=True)
        for i, image in enumerate("abcd"):
            device.resolve(i, image=image)

        assert images == ["b"]
        assert len(sessions) == 1
        assert sessions[0].failures == 0
        assert orchestrator.is_burst_active is False
        assert orchestrator.bursts_completed == 1

    def test_completions_in_any_order(self, orchestrator, device, images):
        orchestrator.on_trigger(prefer_burst=True)
        for i in (3, 1, 0, 2):
            assert images == []
            device.resolve(i)
        assert len(images) == 1

    def test_failure_decrements_expected_count(self, orchestrator, device, images, sessions):
        orchestrator.on_trigger(prefer_burst=True)
        device.fail(1)
        assert orchestrator.session.expected_count == 3
        assert orchestrator.session.failures == 1
        device.resolve(0)
        device.resolve(2)
        assert images == []
        device.resolve(3)
        assert len(images) == 1
        assert sessions[0].failures == 1

    def test_all_failures_close_without_selection(self, device, clock, images, failures, sessions):
        detector = Mock()
        orchestrator = make_orchestrator(device, clock, images, failures, sessions, detector=detector)
        orchestrator.on_trigger(prefer_burst=True)
        for i in range(4):
            device.fail(i)

        assert images == []
        assert len(sessions) == 1
        assert sessions[0].failures == 4
        assert orchestrator.is_burst_active is False
        detector.detect.assert_not_called()

    def test_synchronous_errors_still_close_burst(self, orchestrator, device, sessions):
        device.raise_on_capture = RuntimeError("sensor offline")
        orchestrator.on_trigger(prefer_burst=True)
        assert orchestrator.is_burst_active is False
        assert sessions[0].failures == 4

    def test_custom_burst_size(self, device, clock, images, failures, sessions):
        orchestrator = make_orchestrator(device, clock, images, failures, sessions, target_count=6)
        orchestrator.on_trigger(prefer_burst=True)
        assert len(device.commands) == 6


class TestRearm:
    def test_disarmed_during_burst(self, orchestrator, device, clock):
        orchestrator.on_trigger(prefer_burst=True)
        assert orchestrator.is_armed(clock()) is False

    def test_rearm_after_delay(self, orchestrator, device, clock):
        orchestrator.on_trigger(prefer_burst=True)
        for i in range(4):
            device.resolve(i)

        assert orchestrator.is_armed(clock()) is False
        assert orchestrator.take_rearm(clock.advance(0.5)) is False
        assert orchestrator.is_armed(clock.advance(0.5)) is True
        assert orchestrator.take_rearm(clock()) is True
        assert orchestrator.take_rearm(clock()) is False

    def test_reset_abandons_burst(self, orchestrator, device, images, sessions):
        orchestrator.on_trigger(prefer_burst=True)
        orchestrator.reset()
        assert orchestrator.is_burst_active is False
        for i in range(4):
            device.resolve(i)
        assert images == []
        assert sessions == []

    def test_reset_then_new_burst_ignores_stale_completions(self, orchestrator, device, images):
        orchestrator.on_trigger(prefer_burst=True)
        orchestrator.reset()
        orchestrator.on_trigger(prefer_burst=True)
        for i in range(4):
            device.resolve(i)
        assert images == []
        for i in range(4, 8):
            device.resolve(i)
        assert len(images) == 1


class TestDispatch:
    def test_completions_go_through_dispatch(self, device, clock):
        calls = []

        def dispatch(fn):
            calls.append(fn)
            fn()

        orchestrator = CaptureOrchestrator(
            device, BurstFrameSelector(StubDetector()), clock=clock, dispatch=dispatch,
        )
        orchestrator.on_trigger(prefer_burst=True)
        for i in range(4):
            device.resolve(i)
        # four completions plus the commit after selection
        assert len(calls) == 5

    def test_single_shot_delivered_without_dispatch(self, device, clock):
        calls, images = [], []
        orchestrator = CaptureOrchestrator(
            device, BurstFrameSelector(StubDetector()), clock=clock,
            dispatch=calls.append, on_image=images.append,
        )
        orchestrator.on_trigger(prefer_burst=False)
        device.resolve(0, image="photo")
        assert calls == []
        assert images == ["photo"]


class TestRunSelection:
    def make(self, device, clock, images, sessions):
        jobs = []
        orchestrator = CaptureOrchestrator(
            device,
            BurstFrameSelector(StubDetector()),
            clock=clock,
            run_selection=jobs.append,
            on_image=images.append,
            on_burst_complete=sessions.append,
        )
        return orchestrator, jobs

    def test_burst_stays_active_until_selection_runs(self, device, clock, images, sessions):
        orchestrator, jobs = self.make(device, clock, images, sessions)
        orchestrator.on_trigger(prefer_burst=True)
        for i in range(4):
            device.resolve(i)

        assert len(jobs) == 1
        assert orchestrator.is_burst_active is True
        assert orchestrator.is_armed(clock.advance(5.0)) is False
        assert images == [] and sessions == []

        jobs[0]()
        assert images == [3]
        assert len(sessions) == 1
        assert orchestrator.is_burst_active is False
        # re-arm delay counts from the commit
        assert orchestrator.is_armed(clock()) is False
        assert orchestrator.is_armed(clock.advance(1.0)) is True

    def test_reset_before_selection_drops_image(self, device, clock, images, sessions):
        orchestrator, jobs = self.make(device, clock, images, sessions)
        orchestrator.on_trigger(prefer_burst=True)
        for i in range(4):
            device.resolve(i)
        orchestrator.reset()

        jobs[0]()
        assert images == []
        assert sessions == []
        assert orchestrator.bursts_completed == 0

    def test_selector_error_falls_back_to_latest_frame(self, device, clock, images, sessions):
        orchestrator, jobs = self.make(device, clock, images, sessions)
        orchestrator.on_trigger(prefer_burst=True)
        for i in range(4):
            device.resolve(i, image=f"frame{i}")
        with patch.object(BurstFrameSelector, "select_best", side_effect=RuntimeError("boom")):
            jobs[0]()
        assert images == ["frame3"]
        assert len(sessions) == 1

    def test_all_failed_burst_skips_selection(self, device, clock, images, sessions):
        orchestrator, jobs = self.make(device, clock, images, sessions)
        orchestrator.on_trigger(prefer_burst=True)
        for i in range(4):
            device.fail(i)
        assert jobs == []
        assert len(sessions) == 1
