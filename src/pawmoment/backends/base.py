"""Protocol definitions for the engine's external collaborators."""

from concurrent.futures import Future
from typing import Any, Optional, Protocol

from pawmoment.types import PoseSample, QualityMode


class PoseDetector(Protocol):
    """Keypoint detector consumed as a black box.

    Implementations return the eyes and nose of the most prominent
    subject, or None when nothing is found.
    Examples: YOLO pose, a keypoint replay log.
    """

    def detect(self, frame: Any) -> Optional[PoseSample]:
        """Detect eye/nose keypoints in a single frame."""
        ...


class CaptureDevice(Protocol):
    """Camera capture hardware.

    ``capture`` must not block: it dispatches the command and returns a
    future that resolves to an image or raises the capture error.
    """

    def capture(self, mode: QualityMode) -> "Future[Any]":
        """Issue one capture command."""
        ...


class LightMeter(Protocol):
    """Source of the ambient light proxy (sensor gain / ISO)."""

    def current_light_proxy(self) -> float:
        """Return the current ISO reading."""
        ...


__all__ = ["PoseDetector", "CaptureDevice", "LightMeter"]
