"""Command-line interface for pawmoment."""

import argparse
import logging
import sys

from pawmoment.cli.utils import configure_log_levels


def _add_config_args(parser):
    """Add --config and the common threshold overrides to a parser."""
    parser.add_argument("--config", type=str, metavar="PATH", help="Engine config YAML file")
    parser.add_argument("--cooldown", type=float, help="Trigger cooldown in seconds (default: 2.0)")
    parser.add_argument("--required-frames", type=int, help="Stable frames before trigger (default: 2)")
    parser.add_argument("--burst-size", type=int, help="Frames per burst (default: 4)")
    parser.add_argument(
        "--reset-policy", choices=["reset", "decay"],
        help="Streak handling on a failing frame (default: reset)",
    )


def _add_trace_args(parser):
    """Add --trace, --trace-output args to a parser."""
    parser.add_argument("--trace", choices=["off", "minimal", "normal", "verbose"], default="off")
    parser.add_argument("--trace-output", type=str, help="Output file for trace records (JSONL)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pawmoment",
        description="PawMoment - Real-time shutter trigger for pet photography",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pawmoment info                              # Effective configuration
  pawmoment info --config pawmoment.yaml      # Configuration from file
  pawmoment replay session.jsonl              # Replay a keypoint log
  pawmoment replay session.jsonl --trace verbose --trace-output trace.jsonl
  pawmoment live --camera 0 -o ./shots        # Live camera with YOLO pose
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # info command
    info_parser = subparsers.add_parser(
        "info",
        help="Show version and effective configuration",
    )
    _add_config_args(info_parser)
    info_parser.add_argument("--yaml", action="store_true", help="Print configuration as YAML")

    # replay command
    replay_parser = subparsers.add_parser(
        "replay",
        help="Replay a JSONL keypoint log through the trigger engine",
    )
    replay_parser.add_argument("path", help="Path to keypoint log (JSONL)")
    _add_config_args(replay_parser)
    _add_trace_args(replay_parser)
    replay_parser.add_argument("--report", type=str, help="Save replay report to JSON file")

    # live command
    live_parser = subparsers.add_parser(
        "live",
        help="Run the trigger engine on a live camera",
    )
    live_parser.add_argument("--camera", type=str, default="0", help="Camera index or video path (default: 0)")
    live_parser.add_argument("--output", "-o", type=str, default="./shots", help="Output directory")
    live_parser.add_argument("--model", type=str, default="yolov8n-pose.pt", help="YOLO pose weights")
    live_parser.add_argument(
        "--layout", choices=["coco", "ap10k"], default="coco",
        help="Keypoint layout of the pose model (default: coco)",
    )
    live_parser.add_argument("--device", type=str, default="cpu", help="Device for YOLO (default: cpu)")
    live_parser.add_argument("--record", type=str, metavar="PATH", help="Also write a keypoint log")
    live_parser.add_argument("--max-frames", type=int, help="Stop after N frames")
    _add_config_args(live_parser)
    _add_trace_args(live_parser)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)
        configure_log_levels()

    from pawmoment.cli import commands

    if args.command == "info":
        commands.run_info(args)

    elif args.command == "replay":
        commands.run_replay(args)

    elif args.command == "live":
        commands.run_live(args)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
