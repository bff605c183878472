"""Trace output sinks.

- FileSink: JSONL file output
- ConsoleSink: Formatted console output
- MemorySink: In-memory buffer for testing/analysis
- NullSink: Discards everything
"""

import json
import sys
import threading
from pathlib import Path
from typing import List, Optional, TextIO, Union

from pawmoment.observability.hub import Sink, TraceRecord
from pawmoment.observability.records import (
    BurstCompleteRecord,
    CaptureFailureRecord,
    FrameDropRecord,
    ScanningChangeRecord,
    TriggerFireRecord,
)


class NullSink(Sink):
    def write(self, record: TraceRecord) -> None:
        pass


class MemorySink(Sink):
    """Keeps records in memory, optionally bounded."""

    def __init__(self, max_records: Optional[int] = None):
        self._records: List[TraceRecord] = []
        self._max_records = max_records
        self._lock = threading.Lock()

    def write(self, record: TraceRecord) -> None:
        with self._lock:
            self._records.append(record)
            if self._max_records is not None and len(self._records) > self._max_records:
                del self._records[: len(self._records) - self._max_records]

    def get_records(self) -> List[TraceRecord]:
        with self._lock:
            return list(self._records)

    def get_by_type(self, record_type: str) -> List[TraceRecord]:
        return [r for r in self.get_records() if r.record_type == record_type]

    def get_triggers(self) -> List[TriggerFireRecord]:
        return [r for r in self.get_records() if isinstance(r, TriggerFireRecord)]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class FileSink(Sink):
    """Appends records to a JSONL file, one object per line."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file: Optional[TextIO] = open(self._path, "a", encoding="utf-8")
        self._lock = threading.Lock()

    def write(self, record: TraceRecord) -> None:
        line = json.dumps(record.to_dict(), default=str)
        with self._lock:
            if self._file is not None:
                self._file.write(line + "\n")

    def flush(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.flush()

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    @property
    def path(self) -> Path:
        return self._path


_COLORS = {
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "cyan": "\033[36m",
    "blue": "\033[34m",
}
_RESET = "\033[0m"


class ConsoleSink(Sink):
    """Writes a one-line summary of notable records."""

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None):
        self._stream = stream or sys.stderr
        if color is None:
            color = hasattr(self._stream, "isatty") and self._stream.isatty()
        self._color = color

    def _colorize(self, text: str, color: str) -> str:
        if not self._color:
            return text
        return f"{_COLORS[color]}{text}{_RESET}"

    def write(self, record: TraceRecord) -> None:
        line = self._format_record(record)
        if line is not None:
            self._stream.write(line + "\n")

    def flush(self) -> None:
        self._stream.flush()

    def _format_record(self, record: TraceRecord) -> Optional[str]:
        if isinstance(record, TriggerFireRecord):
            tag = self._colorize("[TRIGGER]", "green")
            mode = "burst" if record.prefer_burst else "single"
            suffix = "" if record.accepted else " (ignored: burst active)"
            return f"{tag} t={record.t_sec:.3f}s {mode} streak={record.streak} d={record.displacement:.4f}{suffix}"
        if isinstance(record, BurstCompleteRecord):
            tag = self._colorize("[BURST]", "cyan")
            return (
                f"{tag} {record.frames}/{record.target_count} frames, "
                f"{record.failures} failed in {record.duration_sec * 1000:.0f}ms"
            )
        if isinstance(record, CaptureFailureRecord):
            tag = self._colorize("[CAPTURE]", "red")
            return f"{tag} failed: {record.error}"
        if isinstance(record, ScanningChangeRecord):
            tag = self._colorize("[SCAN]", "blue")
            return f"{tag} {'on' if record.scanning else 'off'}"
        if isinstance(record, FrameDropRecord):
            tag = self._colorize("[DROP]", "yellow")
            return f"{tag} t={record.t_sec:.3f}s total={record.dropped_total}"
        return None


__all__ = ["FileSink", "ConsoleSink", "MemorySink", "NullSink"]
