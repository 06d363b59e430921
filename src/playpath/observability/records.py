"""Trace record data classes for observability.

Record Categories:
- Base: TraceRecord
- Loading: ProviderLoadRecord
- Lifecycle: LifecycleRecord
- Dispatch: DispatchRecord, CancellationRecord
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
import json
import time

from playpath.observability import TraceLevel


@dataclass
class TraceRecord:
    """Base class for all trace records.

    Subclasses set ``record_type`` and ``min_level`` as non-init fields.
    """
    record_type: str = field(default="base", init=False)
    timestamp_ns: int = field(default_factory=lambda: time.perf_counter_ns())
    min_level: TraceLevel = field(default=TraceLevel.NORMAL, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d.pop("min_level", None)
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


@dataclass
class ProviderLoadRecord(TraceRecord):
    """A provider descriptor was turned into an instance, or skipped."""
    record_type: str = field(default="provider_load", init=False)
    min_level: TraceLevel = field(default=TraceLevel.MINIMAL, repr=False)

    provider: str = ""
    version: str = ""
    loaded: bool = True
    error: Optional[str] = None
    load_ms: float = 0.0


@dataclass
class LifecycleRecord(TraceRecord):
    """A lifecycle event was broadcast to the providers."""
    record_type: str = field(default="lifecycle", init=False)
    min_level: TraceLevel = field(default=TraceLevel.MINIMAL, repr=False)

    handler_id: int = 0
    event: str = ""  # initializing, initialized, initializing_switch, ...
    open_epoch: int = 0
    item_epoch: int = 0
    provider_count: int = 0


@dataclass
class DispatchRecord(TraceRecord):
    """One capability dispatch chain ran to an end state."""
    record_type: str = field(default="dispatch", init=False)

    capability: str = ""
    policy: str = ""
    status: str = ""  # success, error, cancelled, exhausted, completed
    tried: List[str] = field(default_factory=list)
    winner: Optional[str] = None
    elapsed_ms: float = 0.0


@dataclass
class CancellationRecord(TraceRecord):
    """A dispatch stopped at a poll point."""
    record_type: str = field(default="cancellation", init=False)
    min_level: TraceLevel = field(default=TraceLevel.MINIMAL, repr=False)

    capability: str = ""
    pending_provider: str = ""  # provider that would have been called next
    counter: str = ""
    snapshot_epoch: int = 0
    current_epoch: int = 0
    interrupted: bool = False


__all__ = [
    "TraceRecord",
    "ProviderLoadRecord",
    "LifecycleRecord",
    "DispatchRecord",
    "CancellationRecord",
]
