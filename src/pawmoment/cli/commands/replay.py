"""Replay command for pawmoment CLI."""

import json
import sys
import time
from datetime import datetime
from pathlib import Path

from pawmoment.cli.utils import cleanup_observability, load_config, setup_observability


def run_replay(args):
    """Replay a keypoint log and print the fired triggers."""
    import pawmoment as pm

    config = load_config(args)
    hub, file_sink = setup_observability(getattr(args, "trace", "off"), getattr(args, "trace_output", None))

    print(f"Replaying: {args.path}")
    print(f"Cooldown: {config.stability.cooldown_sec}s, "
          f"required frames: {config.stability.required_frames}, "
          f"burst: {config.burst.target_count}")
    print("-" * 50)

    def on_trigger(decision):
        mode = "BURST" if decision.prefer_burst else "SINGLE"
        print(f"  TRIGGER {mode} t={decision.timestamp:.3f}s (streak={decision.streak}, "
              f"d={decision.displacement:.4f})")

    start_time = time.time()
    try:
        result = pm.replay(args.path, config=config, on_trigger=on_trigger, hub=hub)
    except (FileNotFoundError, ValueError) as e:
        print(f"\nError during replay: {e}", file=sys.stderr)
        cleanup_observability(hub, file_sink)
        sys.exit(1)
    elapsed = time.time() - start_time

    print("-" * 50)
    print(f"Replay complete in {elapsed:.2f}s")
    print(f"  Frames: {result.frame_count} ({result.duration_sec:.1f}s of footage)")
    print(f"  Triggers: {len(result.triggers)} ({result.singles} single, {result.bursts} burst)")
    print(f"  Selected frames: {result.selected_frames}")

    if getattr(args, "report", None):
        report = {
            "source": str(Path(args.path).resolve()),
            "processed_at": datetime.now().isoformat(),
            "config": config.to_dict(),
            "results": {
                "frames": result.frame_count,
                "duration_sec": result.duration_sec,
                "singles": result.singles,
                "bursts": result.bursts,
                "selected_frames": result.selected_frames,
            },
            "triggers": [
                {
                    "timestamp": t.timestamp,
                    "prefer_burst": t.prefer_burst,
                    "streak": t.streak,
                    "displacement": t.displacement,
                }
                for t in result.triggers
            ],
        }
        with open(args.report, "w") as f:
            json.dump(report, f, indent=2)
        print(f"  Report: {args.report}")

    cleanup_observability(hub, file_sink)
