"""Shared test helpers for pawmoment tests."""

import json
from concurrent.futures import Future
from pathlib import Path
from typing import Dict, List, Optional

import cv2
import numpy as np

from pawmoment.types import Keypoint, PoseSample, QualityMode


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeCaptureDevice:
    """Capture device whose futures are resolved by the test.

    With ``auto_resolve`` every capture completes at once with the next
    image from ``images`` (or an incrementing integer).
    """

    def __init__(self, auto_resolve: bool = False, images: Optional[List] = None):
        self.auto_resolve = auto_resolve
        self.images = list(images) if images is not None else None
        self.commands: List[QualityMode] = []
        self.pending: List[Future] = []
        self.fail_next = 0
        self.raise_on_capture: Optional[Exception] = None

    def capture(self, mode: QualityMode) -> Future:
        if self.raise_on_capture is not None:
            raise self.raise_on_capture
        index = len(self.commands)
        self.commands.append(mode)
        future: Future = Future()
        if not self.auto_resolve:
            self.pending.append(future)
            return future
        if self.fail_next > 0:
            self.fail_next -= 1
            future.set_exception(RuntimeError("sensor busy"))
        else:
            future.set_result(self.images[index] if self.images is not None else index)
        return future

    def resolve(self, index: int, image=None) -> None:
        self.pending[index].set_result(index if image is None else image)

    def fail(self, index: int, error: Optional[Exception] = None) -> None:
        self.pending[index].set_exception(error or RuntimeError("sensor busy"))


class FakeLightMeter:
    def __init__(self, iso: float = 100.0):
        self.iso = iso

    def current_light_proxy(self) -> float:
        return self.iso


class StubDetector:
    """Detector returning preset samples keyed by frame."""

    def __init__(self, samples: Optional[Dict] = None, default: Optional[PoseSample] = None):
        self.samples = dict(samples or {})
        self.default = default
        self.calls: List = []

    def detect(self, frame):
        self.calls.append(frame)
        if isinstance(frame, PoseSample):
            return frame
        return self.samples.get(frame, self.default)


def make_sample(
    nose_x: float = 0.5,
    nose_y: float = 0.45,
    conf: float = 0.9,
    eye_y: float = 0.55,
    eye_dx: float = 0.1,
    t: float = 0.0,
) -> PoseSample:
    """Frontal sample: eyes level above the nose, centered on ``x=0.5``."""
    return PoseSample(
        left_eye=Keypoint(0.5 - eye_dx, eye_y, conf),
        right_eye=Keypoint(0.5 + eye_dx, eye_y, conf),
        nose=Keypoint(nose_x, nose_y, conf),
        timestamp=t,
    )


def shifted(sample: PoseSample, dx: float = 0.0, dy: float = 0.0) -> PoseSample:
    """Translate every keypoint of a sample."""

    def move(kp: Keypoint) -> Keypoint:
        return Keypoint(kp.x + dx, kp.y + dy, kp.confidence)

    return PoseSample(move(sample.left_eye), move(sample.right_eye), move(sample.nose), sample.timestamp)


def write_keypoint_log(path: Path, records: List[dict]) -> Path:
    """Write dict records as a JSONL keypoint log."""
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record) + "\n")
    return path


def frontal_record(t: float, nose_x: float = 0.5, conf: float = 0.9, iso: float = 100.0) -> dict:
    return {
        "t": t,
        "iso": iso,
        "left_eye": [0.4, 0.55, conf],
        "right_eye": [0.6, 0.55, conf],
        "nose": [nose_x, 0.45, conf],
    }


def create_test_video(path: Path, num_frames: int = 30, fps: int = 30, brightness: int = 128) -> None:
    """Create a flat-colored test video file."""
    width, height = 320, 240
    fourcc = cv2.VideoWriter_fourcc(*"mp4v")
    writer = cv2.VideoWriter(str(path), fourcc, fps, (width, height))

    for i in range(num_frames):
        frame = np.full((height, width, 3), brightness, dtype=np.uint8)
        cv2.putText(
            frame, f"F{i}", (10, 30),
            cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2,
        )
        writer.write(frame)

    writer.release()
