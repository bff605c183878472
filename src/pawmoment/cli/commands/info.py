"""Info command for pawmoment CLI.

Shows versions, optional backends and the effective engine configuration.
"""

import yaml

from pawmoment.cli.utils import load_config


def run_info(args):
    """Show version information and the effective configuration."""
    config = load_config(args)

    if getattr(args, "yaml", False):
        print(yaml.safe_dump(config.to_dict(), sort_keys=False), end="")
        return

    print("PawMoment - System Information")
    print("=" * 60)
    _print_version_info()

    print("\n[Stability]")
    print("-" * 60)
    s = config.stability
    print(f"  required_frames: {s.required_frames}")
    print(f"  cooldown_sec:    {s.cooldown_sec}")
    print(f"  reset_policy:    {s.reset_policy.value}")

    print("\n[Geometry]")
    print("-" * 60)
    g = config.geometry
    print(f"  min_confidence:  {g.min_confidence}")
    print(f"  symmetry_ratio:  {g.symmetry_ratio}")
    print(f"  aspect_ratio:    [{g.min_aspect_ratio}, {g.max_aspect_ratio}]")

    print("\n[Motion]")
    print("-" * 60)
    tiers = config.motion.iso_tiers
    for tier in tiers:
        print(f"  ISO < {tier.upper_bound:g}: ceiling={tier.ceiling}")
    top = tiers[-1].upper_bound if tiers else 0.0
    print(f"  ISO >= {top:g}: ceiling={config.motion.high_iso_ceiling}")
    print(f"  burst above displacement {config.motion.small_motion_threshold}")

    print("\n[Burst]")
    print("-" * 60)
    b = config.burst
    print(f"  target_count:    {b.target_count}")
    print(f"  rearm_delay_sec: {b.rearm_delay_sec}")
    print(f"  auto_mode:       {config.auto_mode}")


def _print_version_info():
    """Print version information."""
    from pawmoment import __version__

    print(f"  pawmoment: {__version__}")

    import cv2
    print(f"  opencv:    {cv2.__version__}")

    try:
        import ultralytics
        version = getattr(ultralytics, "__version__", "installed")
        print(f"  ultralytics: {version}")
    except ImportError:
        print("  ultralytics: NOT INSTALLED (live detection unavailable)")
