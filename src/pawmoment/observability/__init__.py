"""Observability system for pawmoment.

Tracks per-frame streak decisions, trigger firings, burst completion and
capture failures without touching the engine's control flow.

Trace Levels:
- OFF: No tracing (production default)
- MINIMAL: Triggers, bursts and capture failures
- NORMAL: + scanning changes and dropped frames
- VERBOSE: + every frame decision

Example:
    >>> from pawmoment.observability import ObservabilityHub, TraceLevel, FileSink
    >>> hub = ObservabilityHub.get_instance()
    >>> hub.configure(level=TraceLevel.NORMAL)
    >>> hub.add_sink(FileSink("/tmp/trace.jsonl"))
"""

from pawmoment.observability.hub import ObservabilityHub, Sink, TraceLevel, TraceRecord
from pawmoment.observability.sinks import ConsoleSink, FileSink, MemorySink, NullSink

__all__ = [
    "TraceLevel",
    "TraceRecord",
    "Sink",
    "ObservabilityHub",
    "FileSink",
    "ConsoleSink",
    "MemorySink",
    "NullSink",
]
