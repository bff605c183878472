"""Collaborator protocols and hardware/replay adapters.

Adapters with heavy dependencies are imported from their own modules:

    >>> from pawmoment.backends.opencv_camera import OpenCVCamera
    >>> from pawmoment.backends.yolo_pose import YOLOPoseDetector
"""

from pawmoment.backends.base import CaptureDevice, LightMeter, PoseDetector
from pawmoment.backends.replay import KeypointReplay, load_samples

__all__ = [
    "PoseDetector",
    "CaptureDevice",
    "LightMeter",
    "KeypointReplay",
    "load_samples",
]
