"""OpenCV camera adapter: capture device, light meter and image saving."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from pawmoment.errors import CaptureError
from pawmoment.types import QualityMode

logger = logging.getLogger(__name__)

# Brightness-based ISO estimate: mid-grey at base ISO, doubling per halving.
_REFERENCE_LUMA = 118.0
_BASE_ISO = 100.0
_MAX_ISO = 6400.0


def estimate_iso(frame: np.ndarray) -> float:
    """Estimate an ISO-like gain from mean frame brightness.

    Darker frames map to higher values, mirroring how auto exposure
    raises sensor gain in low light.
    """
    if frame.ndim == 3:
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    else:
        gray = frame
    mean = float(np.mean(gray))
    iso = _BASE_ISO * _REFERENCE_LUMA / max(mean, 1.0)
    return float(min(max(iso, _BASE_ISO / 2), _MAX_ISO))


class OpenCVCamera:
    """``cv2.VideoCapture`` as a :class:`CaptureDevice` and :class:`LightMeter`.

    Preview frames come from :meth:`read_frame`. Still captures run on a
    worker thread and return futures. ``BALANCED`` captures discard one
    buffered frame first so the still is fresh; ``SPEED`` captures take
    the next frame as is.

    Args:
        source: Camera index or video path.
        width: Requested frame width.
        height: Requested frame height.

    Example:
        >>> with OpenCVCamera(0) as camera:
        ...     frame = camera.read_frame()
        ...     image = camera.capture(QualityMode.BALANCED).result()
    """

    def __init__(
        self,
        source: Union[int, str] = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ):
        self._source = source
        self._width = width
        self._height = height
        self._cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._last_frame: Optional[np.ndarray] = None

    def open(self) -> None:
        if self._cap is not None:
            return
        cap = cv2.VideoCapture(self._source)
        if not cap.isOpened():
            raise CaptureError(f"Cannot open camera: {self._source}")
        if self._width:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        if self._height:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap = cap
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pawmoment-capture")
        logger.info("Camera opened: %s", self._source)

    def read_frame(self) -> Optional[np.ndarray]:
        """Read the next preview frame, or None at end of stream."""
        with self._lock:
            frame = self._read_locked()
        return frame

    def _read_locked(self) -> Optional[np.ndarray]:
        if self._cap is None:
            raise CaptureError("Camera not opened. Call open() first.")
        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        self._last_frame = frame
        return frame

    def capture(self, mode: QualityMode) -> "Future[np.ndarray]":
        if self._executor is None:
            raise CaptureError("Camera not opened. Call open() first.")
        return self._executor.submit(self._capture_still, mode)

    def _capture_still(self, mode: QualityMode) -> np.ndarray:
        with self._lock:
            if mode is QualityMode.BALANCED and self._cap is not None:
                self._cap.grab()
            frame = self._read_locked()
        if frame is None:
            raise CaptureError(f"Capture failed ({mode.value}): no frame from {self._source}")
        return frame.copy()

    def current_light_proxy(self) -> float:
        if self._cap is not None:
            iso = self._cap.get(cv2.CAP_PROP_ISO_SPEED)
            if iso and iso > 0:
                return float(iso)
        if self._last_frame is None:
            return _BASE_ISO
        return estimate_iso(self._last_frame)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        with self._lock:
            if self._cap is not None:
                self._cap.release()
                self._cap = None
        logger.info("Camera closed: %s", self._source)

    def __enter__(self) -> "OpenCVCamera":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def is_opened(self) -> bool:
        return self._cap is not None


def save_image(image: np.ndarray, output_dir: Union[str, Path], prefix: str = "paw") -> Path:
    """Write a selected frame as JPEG.

    Returns:
        Path of the written file.

    Raises:
        CaptureError: If OpenCV could not encode or write the image.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    path = output_dir / f"{prefix}_{stamp}.jpg"
    if not cv2.imwrite(str(path), image):
        raise CaptureError(f"Failed to write image: {path}")
    logger.info("Saved %s", path)
    return path
