"""Dispatch and cancellation engine.

- SessionGuard: open/item epochs and the interrupt flag
- CancellationToken: epoch snapshot checked before every provider call
- CapabilityRegistry: builds providers and the capability index
- Dispatcher: priority-ordered invocation under a DispatchPolicy
- ProviderHandler: lifecycle events and capability operations
"""

from playpath.session.guard import SessionGuard, CounterKind, CancellationToken
from playpath.session.registry import CapabilityRegistry, CapabilityIndex
from playpath.session.dispatcher import (
    Dispatcher,
    DispatchPolicy,
    DispatchStatus,
    DispatchOutcome,
)
from playpath.session.handler import ProviderHandler, OpenSession, SuggestionResult

__all__ = [
    "SessionGuard",
    "CounterKind",
    "CancellationToken",
    "CapabilityRegistry",
    "CapabilityIndex",
    "Dispatcher",
    "DispatchPolicy",
    "DispatchStatus",
    "DispatchOutcome",
    "ProviderHandler",
    "OpenSession",
    "SuggestionResult",
]
