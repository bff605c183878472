"""Shared helpers for CLI commands."""

import logging
import sys

from pawmoment.config import EngineConfig
from pawmoment.errors import ConfigError
from pawmoment.types import StreakResetPolicy

_NOISY_LOGGERS = ("ultralytics", "PIL", "matplotlib")


def configure_log_levels():
    """Quiet third-party loggers at the default log level."""
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def load_config(args) -> EngineConfig:
    """Build the engine config from --config and the override flags.

    Exits with status 2 on an invalid configuration.
    """
    config_path = getattr(args, "config", None)
    try:
        config = EngineConfig.from_yaml(config_path) if config_path else EngineConfig()

        if getattr(args, "cooldown", None) is not None:
            config.stability.cooldown_sec = args.cooldown
        if getattr(args, "required_frames", None) is not None:
            config.stability.required_frames = args.required_frames
        if getattr(args, "burst_size", None) is not None:
            config.burst.target_count = args.burst_size
        if getattr(args, "reset_policy", None) is not None:
            config.stability.reset_policy = StreakResetPolicy.from_string(args.reset_policy)

        return config.validate()
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


def setup_observability(trace_level: str, trace_output: str = None):
    """Configure observability based on CLI arguments.

    Args:
        trace_level: Trace level string ("off", "minimal", "normal", "verbose").
        trace_output: Optional path to output JSONL file.

    Returns:
        Tuple of (hub, file_sink) for cleanup. file_sink may be None.
    """
    from pawmoment.observability import ConsoleSink, FileSink, ObservabilityHub, TraceLevel

    level = TraceLevel.from_string(trace_level or "off")
    hub = ObservabilityHub.get_instance()

    if level == TraceLevel.OFF:
        return hub, None

    sinks = [ConsoleSink()]
    file_sink = None
    if trace_output:
        file_sink = FileSink(trace_output)
        sinks.append(file_sink)

    hub.configure(level=level, sinks=sinks)
    print(f"Observability: level={trace_level}", end="")
    if trace_output:
        print(f", output={trace_output}")
    else:
        print()
    return hub, file_sink


def cleanup_observability(hub, file_sink):
    """Clean up observability resources."""
    if hub is not None:
        hub.shutdown()
