"""Tests for burst best-frame selection."""

from unittest.mock import Mock

import pytest

from helpers import StubDetector, make_sample

from pawmoment.config import BurstConfig, GeometryConfig
from pawmoment.scoring import BurstFrameSelector


def selector_with_scores(scores):
    """Selector whose frames are indices scored from a list."""
    selector = BurstFrameSelector(StubDetector())
    selector.score_frame = lambda image: scores[image]
    return selector


class TestScoreFrame:
    def test_confident_frame_scores_confidence_sum(self):
        selector = BurstFrameSelector(StubDetector({"a": make_sample(conf=0.8)}))
        assert selector.score_frame("a") == pytest.approx(2.4)

    def test_weak_detection_gets_fallback(self):
        selector = BurstFrameSelector(
            StubDetector({"a": make_sample(conf=0.3)}),
            burst=BurstConfig(fallback_score=0.1),
        )
        assert selector.score_frame("a") == pytest.approx(0.1)

    def test_nothing_detected_scores_zero(self):
        selector = BurstFrameSelector(StubDetector())
        assert selector.score_frame("missing") == 0.0

    def test_detector_error_scores_zero(self):
        detector = Mock()
        detector.detect.side_effect = RuntimeError("model crashed")
        selector = BurstFrameSelector(detector)
        assert selector.score_frame("a") == 0.0

    def test_threshold_shared_with_geometry(self):
        detector = StubDetector({"a": make_sample(conf=0.3)})
        selector = BurstFrameSelector(detector, geometry=GeometryConfig(min_confidence=0.0))
        assert selector.score_frame("a") == pytest.approx(0.9)


class TestSelectBest:
    def test_highest_score_wins(self):
        selector = selector_with_scores([0.5, 2.7, 1.0, 0.3])
        assert selector.select_best([0, 1, 2, 3]) == 1

    def test_tie_goes_to_latest_frame(self):
        selector = selector_with_scores([0.5, 0.9, 0.9, 0.3])
        assert selector.select_best([0, 1, 2, 3]) == 2

    def test_tie_break_with_real_detector(self):
        samples = {
            0: make_sample(conf=0.5 / 3),
            1: make_sample(conf=0.3),
            2: make_sample(conf=0.3),
            3: make_sample(conf=0.1),
        }
        selector = BurstFrameSelector(
            StubDetector(samples), geometry=GeometryConfig(min_confidence=0.0)
        )
        assert selector.select_best([0, 1, 2, 3]) == 2

    def test_nothing_detectable_returns_most_recent(self):
        selector = BurstFrameSelector(StubDetector())
        assert selector.select_best(["f0", "f1", "f2", "f3"]) == "f3"

    def test_single_frame_returned_without_scoring(self):
        detector = StubDetector()
        selector = BurstFrameSelector(detector)
        assert selector.select_best(["only"]) == "only"
        assert detector.calls == []

    def test_empty_burst_raises(self):
        selector = BurstFrameSelector(StubDetector())
        with pytest.raises(ValueError):
            selector.select_best([])

    def test_score_frames_keeps_order(self):
        selector = selector_with_scores([0.2, 0.1])
        scored = selector.score_frames([0, 1])
        assert [f.index for f in scored] == [0, 1]
        assert [f.score for f in scored] == [0.2, 0.1]

    def test_each_frame_redetected_once(self):
        detector = StubDetector(default=make_sample())
        BurstFrameSelector(detector).select_best(["a", "b", "c", "d"])
        assert detector.calls == ["a", "b", "c", "d"]
