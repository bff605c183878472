"""Live camera command for pawmoment CLI.

Reads preview frames from OpenCV, detects keypoints with YOLO pose and
saves every selected frame to the output directory.
"""

import logging
import sys
import threading
import time
from pathlib import Path

from pawmoment.backends.replay import ReplayRecord, save_samples
from pawmoment.cli.utils import cleanup_observability, load_config, setup_observability
from pawmoment.engine import EngineListener, TriggerEngine
from pawmoment.errors import CaptureError

logger = logging.getLogger(__name__)


class _RecordingDetector:
    """Wraps a detector and keeps a keypoint log of everything it sees."""

    def __init__(self, detector, light_meter):
        self._detector = detector
        self._light_meter = light_meter
        self._start = time.monotonic()
        self._lock = threading.Lock()
        self.records = []

    def detect(self, frame):
        sample = self._detector.detect(frame)
        record = ReplayRecord(
            timestamp=time.monotonic() - self._start,
            iso=self._light_meter.current_light_proxy(),
            sample=sample,
        )
        with self._lock:
            self.records.append(record)
        return sample


class _LiveListener(EngineListener):
    def __init__(self, output_dir: Path):
        self._output_dir = output_dir
        self.saved = []

    def on_scanning_changed(self, scanning):
        print(f"  Scanning {'ON' if scanning else 'OFF'}")

    def on_trigger_decision(self, decision):
        mode = "BURST" if decision.prefer_burst else "SINGLE"
        print(f"  TRIGGER {mode} (d={decision.displacement:.4f})")

    def on_best_frame_selected(self, image):
        from pawmoment.backends.opencv_camera import save_image

        try:
            path = save_image(image, self._output_dir)
        except CaptureError as e:
            logger.warning("%s", e)
            return
        self.saved.append(path)
        print(f"  Saved {path.name}")

    def on_capture_failed(self, error):
        print(f"  Capture failed: {error}")


def run_live(args):
    """Run the engine on a live camera until the stream ends or Ctrl+C."""
    from pawmoment.backends.opencv_camera import OpenCVCamera
    from pawmoment.backends.yolo_pose import YOLOPoseDetector

    config = load_config(args)
    hub, file_sink = setup_observability(getattr(args, "trace", "off"), getattr(args, "trace_output", None))

    source = int(args.camera) if args.camera.isdigit() else args.camera
    output_dir = Path(args.output)

    detector = YOLOPoseDetector(args.model, layout=args.layout)
    try:
        detector.initialize(args.device)
    except ImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        cleanup_observability(hub, file_sink)
        sys.exit(1)

    camera = OpenCVCamera(source)
    try:
        camera.open()
    except CaptureError as e:
        print(f"Error: {e}", file=sys.stderr)
        cleanup_observability(hub, file_sink)
        sys.exit(1)

    active_detector = detector
    recorder = None
    if args.record:
        recorder = _RecordingDetector(detector, camera)
        active_detector = recorder

    listener = _LiveListener(output_dir)
    engine = TriggerEngine(active_detector, camera, light_meter=camera, config=config, listener=listener, hub=hub)

    print(f"Camera: {args.camera}")
    print(f"Output: {output_dir}")
    print("Press Ctrl+C to stop")
    print("-" * 50)

    frames = 0
    try:
        engine.start_scanning()
        while args.max_frames is None or frames < args.max_frames:
            frame = camera.read_frame()
            if frame is None:
                break
            frames += 1
            engine.submit_frame(frame)
    except KeyboardInterrupt:
        print()
    finally:
        engine.close()
        camera.close()
        detector.cleanup()

    stats = engine.stats
    print("-" * 50)
    print(f"  Frames: {frames} (analyzed {stats.frames_analyzed}, dropped {stats.frames_dropped})")
    print(f"  Triggers: {stats.triggers_fired}, bursts: {stats.bursts_completed}")
    print(f"  Saved: {len(listener.saved)} images")

    if recorder is not None:
        count = save_samples(args.record, recorder.records)
        print(f"  Keypoint log: {args.record} ({count} records)")

    cleanup_observability(hub, file_sink)
