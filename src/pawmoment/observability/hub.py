"""Trace levels, base record type and the process-wide hub."""

import enum
import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


class TraceLevel(enum.IntEnum):
    """Verbosity of emitted trace records."""

    OFF = 0
    MINIMAL = 1
    NORMAL = 2
    VERBOSE = 3

    @classmethod
    def from_string(cls, value: str) -> "TraceLevel":
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown trace level: {value!r}")


@dataclass
class TraceRecord:
    """Base class for trace records.

    Subclasses set ``record_type`` and, when they are noisier than
    NORMAL, ``min_level``.
    """

    record_type: str = field(default="trace", init=False)
    min_level: TraceLevel = field(default=TraceLevel.NORMAL, repr=False, init=False)
    wall_time: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("min_level", None)
        return data


class Sink:
    """Receives trace records."""

    def write(self, record: TraceRecord) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class ObservabilityHub:
    """Process-wide trace dispatcher.

    Disabled (level OFF) until configured, so ``emit`` is cheap in
    production.

    Example:
        >>> hub = ObservabilityHub.get_instance()
        >>> hub.configure(level=TraceLevel.NORMAL, sinks=[MemorySink()])
        >>> if hub.enabled:
        ...     hub.emit(TriggerFireRecord(prefer_burst=False))
    """

    _instance: Optional["ObservabilityHub"] = None
    _instance_lock = threading.Lock()

    def __init__(self) -> None:
        self._level = TraceLevel.OFF
        self._sinks: List[Sink] = []
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "ObservabilityHub":
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        with cls._instance_lock:
            if cls._instance is not None:
                cls._instance.shutdown()
            cls._instance = None

    def configure(self, level: TraceLevel, sinks: Optional[Sequence[Sink]] = None) -> None:
        with self._lock:
            self._level = TraceLevel(level)
            if sinks is not None:
                self._sinks = list(sinks)

    def add_sink(self, sink: Sink) -> None:
        with self._lock:
            if sink not in self._sinks:
                self._sinks.append(sink)

    def remove_sink(self, sink: Sink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    @property
    def level(self) -> TraceLevel:
        return self._level

    @property
    def enabled(self) -> bool:
        return self._level > TraceLevel.OFF

    def is_level_enabled(self, level: TraceLevel) -> bool:
        return level <= self._level

    def emit(self, record: TraceRecord) -> None:
        if not self.enabled or not self.is_level_enabled(record.min_level):
            return
        with self._lock:
            sinks = list(self._sinks)
        for sink in sinks:
            try:
                sink.write(record)
            except Exception as exc:
                logger.warning("Sink %s failed: %s", type(sink).__name__, exc)

    def shutdown(self) -> None:
        with self._lock:
            sinks = list(self._sinks)
            self._sinks = []
            self._level = TraceLevel.OFF
        for sink in sinks:
            sink.close()
