"""pawmoment - Real-time shutter trigger for pet photography.

Quick Start:
    >>> import pawmoment as pm
    >>> result = pm.replay("session.jsonl")
    >>> print(f"{len(result.triggers)} triggers")

Live engine:
    >>> from pawmoment import TriggerEngine, EngineListener
    >>> engine = TriggerEngine(detector, camera, light_meter=camera, listener=listener)
    >>> engine.start_scanning()
    >>> engine.submit_frame(frame)

Configuration:
    >>> config = pm.create_default_config(cooldown_sec=3.0, burst_size=6)
    >>> config = pm.EngineConfig.from_yaml("pawmoment.yaml")
"""

__version__ = "0.1.0"

from pawmoment.config import EngineConfig, create_default_config
from pawmoment.engine import EngineListener, EngineStats, TriggerEngine
from pawmoment.errors import CaptureError, ConfigError, DetectorError, PawmomentError
from pawmoment.main import (
    # Configuration
    DEFAULT_BURST_SIZE,
    DEFAULT_COOLDOWN,
    DEFAULT_REQUIRED_FRAMES,
    # Result type
    ReplayResult,
    # High-level API
    replay,
)
from pawmoment.types import (
    FaceFeatures,
    Keypoint,
    PoseSample,
    QualityMode,
    StreakResetPolicy,
    TriggerDecision,
)

__all__ = [
    "__version__",
    # Configuration
    "DEFAULT_COOLDOWN",
    "DEFAULT_REQUIRED_FRAMES",
    "DEFAULT_BURST_SIZE",
    "EngineConfig",
    "create_default_config",
    # High-level API
    "replay",
    "ReplayResult",
    # Engine
    "TriggerEngine",
    "EngineListener",
    "EngineStats",
    # Types
    "Keypoint",
    "PoseSample",
    "TriggerDecision",
    "FaceFeatures",
    "QualityMode",
    "StreakResetPolicy",
    # Errors
    "PawmomentError",
    "ConfigError",
    "CaptureError",
    "DetectorError",
]
