"""Observability system for playpath.

Provides tracing of what the handler does with its providers:
- Provider loading (successes and skipped failures)
- Lifecycle events with the session epochs at that moment
- Every dispatch chain: providers tried, winner, status, elapsed time
- Cancellations observed at a poll point

Trace Levels:
- OFF: No tracing (default)
- MINIMAL: Lifecycle, provider loading and cancellations
- NORMAL: Adds one record per dispatch
- VERBOSE: Everything

Example:
    >>> from playpath.observability import ObservabilityHub, TraceLevel, MemorySink
    >>> hub = ObservabilityHub.get_instance()
    >>> hub.configure(level=TraceLevel.NORMAL, sinks=[MemorySink()])
"""

from enum import IntEnum
from typing import List, Optional
import threading


class TraceLevel(IntEnum):
    """Observability trace levels.

    Higher levels include all lower level information.
    """
    OFF = 0
    MINIMAL = 1
    NORMAL = 2
    VERBOSE = 3

    @classmethod
    def from_string(cls, s: str) -> "TraceLevel":
        try:
            return cls[s.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown trace level: {s}. "
                f"Valid levels: {', '.join(level.name.lower() for level in cls)}"
            ) from None


class Sink:
    """Base class for trace sinks."""

    def write(self, record: "TraceRecord") -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class ObservabilityHub:
    """Process-wide hub that fans trace records out to sinks.

    Singleton; use get_instance(). Handlers check ``enabled`` before
    building a record so tracing costs nothing while it is off.

    Thread Safety:
        Records may be emitted from any thread.
    """

    _instance: Optional["ObservabilityHub"] = None
    _lock = threading.Lock()

    def __init__(self):
        self._level = TraceLevel.OFF
        self._sinks: List[Sink] = []
        self._emit_lock = threading.Lock()
        self._enabled = False

    @classmethod
    def get_instance(cls) -> "ObservabilityHub":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton. For testing only."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.shutdown()
            cls._instance = None

    def configure(
        self,
        level: TraceLevel = TraceLevel.OFF,
        sinks: Optional[List[Sink]] = None,
    ) -> None:
        """Set the trace level and optionally attach sinks."""
        self._level = level
        self._enabled = level > TraceLevel.OFF

        for sink in sinks or []:
            self.add_sink(sink)

    def add_sink(self, sink: Sink) -> None:
        with self._emit_lock:
            self._sinks.append(sink)

    def remove_sink(self, sink: Sink) -> None:
        with self._emit_lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def emit(self, record: "TraceRecord") -> None:
        """Send a record to every sink if its level is enabled.

        Sink failures never reach the caller; tracing must not change
        dispatch behaviour.
        """
        if not self._enabled or record.min_level > self._level:
            return

        with self._emit_lock:
            for sink in self._sinks:
                try:
                    sink.write(record)
                except Exception:
                    pass

    def flush(self) -> None:
        with self._emit_lock:
            for sink in self._sinks:
                try:
                    sink.flush()
                except Exception:
                    pass

    def shutdown(self) -> None:
        """Flush and close all sinks, then turn tracing off."""
        with self._emit_lock:
            for sink in self._sinks:
                try:
                    sink.flush()
                    sink.close()
                except Exception:
                    pass
            self._sinks.clear()

        self._level = TraceLevel.OFF
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def level(self) -> TraceLevel:
        return self._level

    def is_level_enabled(self, level: TraceLevel) -> bool:
        return self._level >= level


# Import TraceRecord and sinks after defining TraceLevel
from playpath.observability.records import TraceRecord
from playpath.observability.sinks import FileSink, ConsoleSink, MemorySink, NullSink

__all__ = [
    "TraceLevel",
    "Sink",
    "ObservabilityHub",
    "TraceRecord",
    "FileSink",
    "ConsoleSink",
    "MemorySink",
    "NullSink",
]
