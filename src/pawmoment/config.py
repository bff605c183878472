"""Configuration classes for the pawmoment trigger engine.

All thresholds are empirically tuned defaults and can be overridden for
calibration, either in code or from a YAML file.

Example:
    >>> from pawmoment.config import EngineConfig, StabilityConfig
    >>>
    >>> config = EngineConfig(
    ...     stability=StabilityConfig(required_frames=3, cooldown_sec=1.5),
    ... )
    >>> config = EngineConfig.from_yaml("pawmoment.yaml")
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pawmoment.errors import ConfigError
from pawmoment.types import StreakResetPolicy


@dataclass
class GeometryConfig:
    """Thresholds for the frontal-pose check.

    Attributes:
        min_confidence: Per-keypoint confidence below which the frame is
            treated as "no detection" (default: 0.6).
        symmetry_ratio: Max |eye midpoint x - nose x| as a fraction of the
            inter-eye distance (default: 0.35).
        min_aspect_ratio: Min eye-to-nose height / inter-eye distance (default: 0.2).
        max_aspect_ratio: Max eye-to-nose height / inter-eye distance (default: 1.6).
    """

    min_confidence: float = 0.6
    symmetry_ratio: float = 0.35
    min_aspect_ratio: float = 0.2
    max_aspect_ratio: float = 1.6


@dataclass
class IsoTier:
    """Velocity ceiling applied when ISO is below ``upper_bound``."""

    upper_bound: float
    ceiling: float


def _default_iso_tiers() -> List[IsoTier]:
    return [IsoTier(upper_bound=200.0, ceiling=0.04), IsoTier(upper_bound=800.0, ceiling=0.02)]


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping, got {type(section).__name__}")
    return section


@dataclass
class MotionConfig:
    """ISO-tiered motion thresholds.

    Attributes:
        iso_tiers: Tiers ordered by ascending ``upper_bound``; the first
            tier with ``iso < upper_bound`` wins.
        high_iso_ceiling: Ceiling when ISO is above every tier (default: 0.005).
        small_motion_threshold: Displacement above which a stable frame
            still prefers a burst (default: 0.003).
    """

    iso_tiers: List[IsoTier] = field(default_factory=_default_iso_tiers)
    high_iso_ceiling: float = 0.005
    small_motion_threshold: float = 0.003


@dataclass
class StabilityConfig:
    """Debouncer settings.

    Attributes:
        required_frames: Consecutive qualifying frames needed to trigger (default: 2).
        cooldown_sec: Minimum seconds between triggers (default: 2.0).
        reset_policy: What a disqualifying frame does to the streak.
    """

    required_frames: int = 2
    cooldown_sec: float = 2.0
    reset_policy: StreakResetPolicy = StreakResetPolicy.RESET


@dataclass
class BurstConfig:
    """Burst capture and selection settings.

    Attributes:
        target_count: Frames captured per burst (default: 4).
        rearm_delay_sec: Delay after a burst before scanning resumes (default: 1.0).
        fallback_score: Score for frames whose re-detection is below
            confidence (default: 0.1).
    """

    target_count: int = 4
    rearm_delay_sec: float = 1.0
    fallback_score: float = 0.1


@dataclass
class EngineConfig:
    """Complete configuration for the trigger engine.

    Attributes:
        geometry: Frontal-pose thresholds.
        motion: ISO-tiered motion thresholds.
        stability: Debouncer settings.
        burst: Burst capture settings.
        auto_mode: Shutter toggles scanning when True, captures immediately
            when False.
    """

    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    motion: MotionConfig = field(default_factory=MotionConfig)
    stability: StabilityConfig = field(default_factory=StabilityConfig)
    burst: BurstConfig = field(default_factory=BurstConfig)
    auto_mode: bool = True

    def validate(self) -> "EngineConfig":
        """Check value ranges.

        Returns:
            self, so calls can be chained.

        Raises:
            ConfigError: If any value is out of range.
        """
        g = self.geometry
        if not 0.0 <= g.min_confidence <= 1.0:
            raise ConfigError(f"geometry.min_confidence must be in [0, 1], got {g.min_confidence}")
        if g.symmetry_ratio < 0:
            raise ConfigError(f"geometry.symmetry_ratio must be >= 0, got {g.symmetry_ratio}")
        if g.min_aspect_ratio > g.max_aspect_ratio:
            raise ConfigError(
                f"geometry aspect range is empty: [{g.min_aspect_ratio}, {g.max_aspect_ratio}]"
            )

        m = self.motion
        bounds = [t.upper_bound for t in m.iso_tiers]
        if bounds != sorted(bounds):
            raise ConfigError(f"motion.iso_tiers must be sorted by upper_bound, got {bounds}")
        if any(t.ceiling < 0 for t in m.iso_tiers) or m.high_iso_ceiling < 0:
            raise ConfigError("motion ceilings must be >= 0")

        s = self.stability
        if s.required_frames < 1:
            raise ConfigError(f"stability.required_frames must be >= 1, got {s.required_frames}")
        if s.cooldown_sec < 0:
            raise ConfigError(f"stability.cooldown_sec must be >= 0, got {s.cooldown_sec}")

        b = self.burst
        if b.target_count < 1:
            raise ConfigError(f"burst.target_count must be >= 1, got {b.target_count}")
        if b.rearm_delay_sec < 0:
            raise ConfigError(f"burst.rearm_delay_sec must be >= 0, got {b.rearm_delay_sec}")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create EngineConfig from a dictionary (e.g., loaded from YAML).

        Missing sections and keys fall back to defaults.

        Raises:
            ConfigError: If a section is not a mapping, or a value has the
                wrong type or range.
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping, got {type(data).__name__}")
        geo = _section(data, "geometry")
        mot = _section(data, "motion")
        stab = _section(data, "stability")
        bur = _section(data, "burst")

        try:
            geometry = GeometryConfig(
                min_confidence=float(geo.get("min_confidence", 0.6)),
                symmetry_ratio=float(geo.get("symmetry_ratio", 0.35)),
                min_aspect_ratio=float(geo.get("min_aspect_ratio", 0.2)),
                max_aspect_ratio=float(geo.get("max_aspect_ratio", 1.6)),
            )

            tiers_data = mot.get("iso_tiers")
            if tiers_data is None:
                iso_tiers = _default_iso_tiers()
            else:
                iso_tiers = [
                    IsoTier(upper_bound=float(t["upper_bound"]), ceiling=float(t["ceiling"]))
                    for t in tiers_data
                ]
            motion = MotionConfig(
                iso_tiers=iso_tiers,
                high_iso_ceiling=float(mot.get("high_iso_ceiling", 0.005)),
                small_motion_threshold=float(mot.get("small_motion_threshold", 0.003)),
            )

            stability = StabilityConfig(
                required_frames=int(stab.get("required_frames", 2)),
                cooldown_sec=float(stab.get("cooldown_sec", 2.0)),
                reset_policy=StreakResetPolicy.from_string(str(stab.get("reset_policy", "reset"))),
            )

            burst = BurstConfig(
                target_count=int(bur.get("target_count", 4)),
                rearm_delay_sec=float(bur.get("rearm_delay_sec", 1.0)),
                fallback_score=float(bur.get("fallback_score", 0.1)),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid engine config: {exc}") from exc

        return cls(
            geometry=geometry,
            motion=motion,
            stability=stability,
            burst=burst,
            auto_mode=bool(data.get("auto_mode", True)),
        ).validate()

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "EngineConfig":
        """Load EngineConfig from a YAML file.

        Raises:
            ImportError: If PyYAML is not installed.
            FileNotFoundError: If the file doesn't exist.
            ConfigError: If the file is not valid YAML or the content is invalid.
        """
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for YAML config support. "
                "Install it with: pip install pyyaml"
            )

        with open(yaml_path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {yaml_path}: {exc}") from exc

        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping: {yaml_path}")
        try:
            return cls.from_dict(data or {})
        except ConfigError as exc:
            raise ConfigError(f"{yaml_path}: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "geometry": {
                "min_confidence": self.geometry.min_confidence,
                "symmetry_ratio": self.geometry.symmetry_ratio,
                "min_aspect_ratio": self.geometry.min_aspect_ratio,
                "max_aspect_ratio": self.geometry.max_aspect_ratio,
            },
            "motion": {
                "iso_tiers": [
                    {"upper_bound": t.upper_bound, "ceiling": t.ceiling}
                    for t in self.motion.iso_tiers
                ],
                "high_iso_ceiling": self.motion.high_iso_ceiling,
                "small_motion_threshold": self.motion.small_motion_threshold,
            },
            "stability": {
                "required_frames": self.stability.required_frames,
                "cooldown_sec": self.stability.cooldown_sec,
                "reset_policy": self.stability.reset_policy.value,
            },
            "burst": {
                "target_count": self.burst.target_count,
                "rearm_delay_sec": self.burst.rearm_delay_sec,
                "fallback_score": self.burst.fallback_score,
            },
            "auto_mode": self.auto_mode,
        }


def create_default_config(
    cooldown_sec: float = 2.0,
    required_frames: int = 2,
    burst_size: int = 4,
    reset_policy: Optional[StreakResetPolicy] = None,
) -> EngineConfig:
    """Create an engine configuration with the common knobs set.

    Example:
        >>> config = create_default_config(cooldown_sec=1.5, required_frames=3)
    """
    return EngineConfig(
        stability=StabilityConfig(
            required_frames=required_frames,
            cooldown_sec=cooldown_sec,
            reset_policy=reset_policy or StreakResetPolicy.RESET,
        ),
        burst=BurstConfig(target_count=burst_size),
    ).validate()
