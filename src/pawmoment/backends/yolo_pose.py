"""YOLO pose detector backend (ultralytics)."""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np

from pawmoment.errors import DetectorError
from pawmoment.types import Keypoint, PoseSample

logger = logging.getLogger(__name__)

# (left_eye, right_eye, nose) rows in the model's keypoint tensor.
COCO_EYE_NOSE_INDICES: Tuple[int, int, int] = (1, 2, 0)
AP10K_EYE_NOSE_INDICES: Tuple[int, int, int] = (0, 1, 2)

KEYPOINT_LAYOUTS: Dict[str, Tuple[int, int, int]] = {
    "coco": COCO_EYE_NOSE_INDICES,
    "ap10k": AP10K_EYE_NOSE_INDICES,
}


class YOLOPoseDetector:
    """Eye/nose detector on top of a YOLO pose model.

    The most confident detection in the frame is used. Pixel coordinates
    are normalized by the frame size and flipped to a bottom-left origin.

    Args:
        model_path: Pose model weights (a COCO person model by default;
            use an animal model with ``layout="ap10k"`` for pets).
        layout: Keypoint layout name ("coco" or "ap10k").
        conf_threshold: Detection confidence threshold.
        iou_threshold: NMS IoU threshold.

    Example:
        >>> detector = YOLOPoseDetector("dog-pose.pt", layout="ap10k")
        >>> detector.initialize("cuda:0")
        >>> sample = detector.detect(frame)
        >>> detector.cleanup()
    """

    def __init__(
        self,
        model_path: Union[str, Path] = "yolov8n-pose.pt",
        layout: str = "coco",
        conf_threshold: float = 0.25,
        iou_threshold: float = 0.7,
    ):
        if layout not in KEYPOINT_LAYOUTS:
            raise ValueError(
                f"Unknown keypoint layout: {layout}. Valid layouts: {sorted(KEYPOINT_LAYOUTS)}"
            )
        self._model_path = str(model_path)
        self._indices = KEYPOINT_LAYOUTS[layout]
        self._conf_threshold = conf_threshold
        self._iou_threshold = iou_threshold
        self._model: Optional[object] = None
        self._device: Union[int, str] = "cpu"
        self._initialized = False

    def initialize(self, device: str = "cpu") -> None:
        """Load the model."""
        if self._initialized:
            return

        try:
            from ultralytics import YOLO
        except ImportError:
            raise ImportError(
                "ultralytics is required for YOLOPoseDetector. "
                "Install with: pip install pawmoment[yolo]"
            )

        self._model = YOLO(self._model_path)
        self._device, provider = self._resolve_device(device)
        self._initialized = True
        logger.info("YOLO pose initialized with model %s (device=%s)", self._model_path, provider)

    def detect(self, frame: np.ndarray) -> Optional[PoseSample]:
        """Detect eyes and nose of the most confident subject.

        Args:
            frame: BGR image as numpy array (H, W, 3).

        Returns:
            PoseSample with normalized keypoints, or None if nothing was found.
        """
        if not self._initialized or self._model is None:
            raise DetectorError("Detector not initialized. Call initialize() first.")

        height, width = frame.shape[:2]
        results = self._model(
            frame,
            device=self._device,
            conf=self._conf_threshold,
            iou=self._iou_threshold,
            verbose=False,
        )

        best_kpts = None
        best_conf = -1.0
        for result in results:
            if result.keypoints is None:
                continue
            keypoints_data = result.keypoints.data.cpu().numpy()
            boxes = result.boxes
            for i, kpts in enumerate(keypoints_data):
                # kpts shape: (K, 3) - x, y, confidence
                if kpts.shape[0] <= max(self._indices) or kpts.shape[1] < 3:
                    continue
                conf = 1.0
                if boxes is not None and i < len(boxes):
                    conf = float(boxes[i].conf[0])
                if conf > best_conf:
                    best_conf = conf
                    best_kpts = kpts

        if best_kpts is None:
            return None
        return self.keypoints_to_sample(best_kpts, width, height, self._indices)

    @staticmethod
    def keypoints_to_sample(
        kpts: np.ndarray,
        width: int,
        height: int,
        indices: Tuple[int, int, int] = COCO_EYE_NOSE_INDICES,
    ) -> PoseSample:
        """Convert a (K, 3) pixel keypoint array into a PoseSample."""
        points = []
        for idx in indices:
            x, y, conf = (float(v) for v in kpts[idx][:3])
            points.append(Keypoint.from_image_coords(x / width, y / height, conf))
        left_eye, right_eye, nose = points
        return PoseSample(left_eye=left_eye, right_eye=right_eye, nose=nose)

    @staticmethod
    def _resolve_device(device: str) -> tuple:
        """Resolve requested device to an available one.

        Falls back: cuda -> mps (macOS) -> cpu.

        Returns:
            (device_for_yolo, provider_name) tuple.
        """
        import torch

        if device.startswith("cuda"):
            if torch.cuda.is_available():
                device_id = device.split(":")[-1] if ":" in device else "0"
                return int(device_id), f"CUDA:{device_id}"
            if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
                logger.info("CUDA unavailable, using MPS")
                return "mps", "MPS"
            logger.warning("CUDA unavailable, falling back to CPU")
            return "cpu", "CPU (CUDA unavailable)"

        if device == "mps":
            if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
                return "mps", "MPS"
            logger.warning("MPS unavailable, falling back to CPU")
            return "cpu", "CPU (MPS unavailable)"

        return "cpu", "CPU"

    def cleanup(self) -> None:
        self._model = None
        self._initialized = False
        logger.info("YOLO pose cleaned up")

    @property
    def is_initialized(self) -> bool:
        return self._initialized
