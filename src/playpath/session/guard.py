"""Session counters and cooperative cancellation.

A ``SessionGuard`` owns two monotonic attempt counters and an interrupt
flag:

- open epoch: advances on every top-level open attempt.
- item epoch: advances on every open attempt and every item switch.

A dispatch captures a ``CancellationToken`` when it begins. The token is
cancelled once the interrupt flag is raised or the counter it watches has
moved past the captured snapshot, which means a newer request superseded
the dispatch.

Thread Safety:
    Counters and the interrupt flag may be read and written from any
    thread. Cancellation is only observed at the dispatcher's poll points.

Example:
    >>> guard = SessionGuard()
    >>> token = guard.token(CounterKind.OPEN)
    >>> token.is_cancelled
    False
    >>> guard.bump_open()
    >>> token.is_cancelled
    True
"""

import threading
from dataclasses import dataclass
from enum import Enum


class CounterKind(str, Enum):
    """Which session counter a snapshot refers to."""

    OPEN = "open"
    ITEM = "item"


class SessionGuard:
    """Monotonic open/item epochs plus an external interrupt flag."""

    def __init__(self):
        self._lock = threading.Lock()
        self._open_epoch = 0
        self._item_epoch = 0
        self._interrupt = threading.Event()

    def snapshot_open_epoch(self) -> int:
        with self._lock:
            return self._open_epoch

    def snapshot_item_epoch(self) -> int:
        with self._lock:
            return self._item_epoch

    def snapshot(self, kind: CounterKind) -> int:
        if kind is CounterKind.OPEN:
            return self.snapshot_open_epoch()
        return self.snapshot_item_epoch()

    def bump_open(self) -> None:
        """Start a new open attempt. Supersedes both open and item state."""
        with self._lock:
            self._open_epoch += 1
            self._item_epoch += 1

    def bump_item_switch(self) -> None:
        """Start a new item switch. Only item state is superseded."""
        with self._lock:
            self._item_epoch += 1

    def is_stale(self, snapshot: int, kind: CounterKind) -> bool:
        """Check whether the counter moved since ``snapshot`` was taken."""
        return self.snapshot(kind) != snapshot

    @property
    def interrupt(self) -> bool:
        return self._interrupt.is_set()

    @interrupt.setter
    def interrupt(self, value: bool) -> None:
        if value:
            self._interrupt.set()
        else:
            self._interrupt.clear()

    def token(self, kind: CounterKind) -> "CancellationToken":
        """Capture a cancellation token for a dispatch starting now."""
        return CancellationToken(self, kind, self.snapshot(kind))

    def __repr__(self) -> str:
        return (
            f"SessionGuard(open_epoch={self._open_epoch}, "
            f"item_epoch={self._item_epoch}, interrupt={self.interrupt})"
        )


@dataclass(frozen=True)
class CancellationToken:
    """Epoch snapshot plus interrupt flag, checked as a single predicate.

    Attributes:
        guard: The guard the snapshot was taken from.
        kind: The counter being watched.
        epoch: Counter value when the token was created.
    """

    guard: SessionGuard
    kind: CounterKind
    epoch: int

    @property
    def is_cancelled(self) -> bool:
        return self.guard.interrupt or self.guard.is_stale(self.epoch, self.kind)

    @property
    def is_stale(self) -> bool:
        """True when a newer attempt superseded this token (interrupt aside)."""
        return self.guard.is_stale(self.epoch, self.kind)
