"""Trace output sinks for observability.

- FileSink: JSONL file output
- ConsoleSink: Human-readable console output
- MemorySink: In-memory buffer for tests and in-session analysis
- NullSink: Discards everything
"""

import sys
import threading
from collections import deque
from pathlib import Path
from typing import Callable, Deque, List, Optional, TextIO

from playpath.observability import Sink
from playpath.observability.records import (
    TraceRecord,
    CancellationRecord,
    DispatchRecord,
    LifecycleRecord,
    ProviderLoadRecord,
)


class FileSink(Sink):
    """Sink that writes trace records to a JSONL file.

    Args:
        path: Path to the output file.
        buffer_size: Number of records to buffer before flushing (default: 100).
        append: Whether to append to an existing file (default: False).
    """

    def __init__(
        self,
        path: str,
        buffer_size: int = 100,
        append: bool = False,
    ):
        self._path = Path(path)
        self._buffer_size = buffer_size
        self._buffer: List[str] = []
        self._lock = threading.Lock()

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file: Optional[TextIO] = open(
            self._path, "a" if append else "w", encoding="utf-8"
        )

    def write(self, record: TraceRecord) -> None:
        line = record.to_json()
        with self._lock:
            self._buffer.append(line)
            if len(self._buffer) >= self._buffer_size:
                self._flush_buffer()

    def _flush_buffer(self) -> None:
        """Must be called with lock held."""
        if not self._buffer or self._file is None:
            return
        self._file.write("".join(line + "\n" for line in self._buffer))
        self._file.flush()
        self._buffer.clear()

    def flush(self) -> None:
        with self._lock:
            self._flush_buffer()

    def close(self) -> None:
        with self._lock:
            self._flush_buffer()
            if self._file is not None:
                self._file.close()
                self._file = None


class ConsoleSink(Sink):
    """Sink that prints one line per record to a stream.

    Args:
        stream: Output stream (default: sys.stderr).
        color: Enable ANSI colors when the stream is a TTY (default: True).
        format_fn: Optional custom formatter. Returning None skips a record.
    """

    COLORS = {
        "reset": "\033[0m",
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "cyan": "\033[96m",
        "gray": "\033[90m",
    }

    STATUS_COLORS = {
        "success": "green",
        "completed": "green",
        "error": "red",
        "cancelled": "yellow",
        "exhausted": "gray",
    }

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        color: bool = True,
        format_fn: Optional[Callable[[TraceRecord], Optional[str]]] = None,
    ):
        self._stream = stream or sys.stderr
        self._color = color and self._stream.isatty()
        self._format_fn = format_fn
        self._lock = threading.Lock()

    def _colorize(self, text: str, color: str) -> str:
        if not self._color:
            return text
        return f"{self.COLORS.get(color, '')}{text}{self.COLORS['reset']}"

    def write(self, record: TraceRecord) -> None:
        formatter = self._format_fn or self._format_record
        line = formatter(record)
        if line:
            with self._lock:
                self._stream.write(line + "\n")
                self._stream.flush()

    def _format_record(self, record: TraceRecord) -> Optional[str]:
        if isinstance(record, DispatchRecord):
            status = self._colorize(
                record.status, self.STATUS_COLORS.get(record.status, "reset")
            )
            winner = f" -> {record.winner}" if record.winner else ""
            tried = ", ".join(record.tried) or "-"
            return (
                f"{self._colorize('[DISPATCH]', 'cyan')} {record.capability} "
                f"{status}{winner} (tried: {tried}, {record.elapsed_ms:.1f}ms)"
            )
        if isinstance(record, CancellationRecord):
            reason = (
                "interrupt" if record.interrupted
                else f"{record.counter} epoch {record.snapshot_epoch} -> {record.current_epoch}"
            )
            return (
                f"{self._colorize('[CANCEL]', 'yellow')} {record.capability} "
                f"before {record.pending_provider} ({reason})"
            )
        if isinstance(record, LifecycleRecord):
            return (
                f"{self._colorize('[LIFECYCLE]', 'gray')} #{record.handler_id} {record.event} "
                f"(open={record.open_epoch}, item={record.item_epoch})"
            )
        if isinstance(record, ProviderLoadRecord) and not record.loaded:
            return f"{self._colorize('[LOAD]', 'red')} {record.provider} failed: {record.error}"
        return None

    def flush(self) -> None:
        with self._lock:
            self._stream.flush()


class MemorySink(Sink):
    """Sink that keeps records in memory.

    Args:
        max_records: Maximum number of records to keep (default: 10000).
    """

    def __init__(self, max_records: int = 10000):
        self._records: Deque[TraceRecord] = deque(maxlen=max_records)
        self._lock = threading.Lock()

    def write(self, record: TraceRecord) -> None:
        with self._lock:
            self._records.append(record)

    def get_records(self, record_type: Optional[str] = None) -> List[TraceRecord]:
        """Get stored records, optionally filtered by record type."""
        with self._lock:
            records = list(self._records)

        if record_type:
            records = [r for r in records if r.record_type == record_type]

        return records

    def get_dispatches(self, capability: Optional[str] = None) -> List[DispatchRecord]:
        """Get dispatch records, optionally for one capability."""
        return [
            r for r in self.get_records("dispatch")
            if capability is None or r.capability == capability
        ]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class NullSink(Sink):
    """Sink that discards all records."""

    def write(self, record: TraceRecord) -> None:
        pass


__all__ = [
    "FileSink",
    "ConsoleSink",
    "MemorySink",
    "NullSink",
]
