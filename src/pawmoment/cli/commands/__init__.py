"""CLI command handlers."""

from pawmoment.cli.commands.info import run_info
from pawmoment.cli.commands.live import run_live
from pawmoment.cli.commands.replay import run_replay

__all__ = [
    "run_info",
    "run_replay",
    "run_live",
]
