"""Priority-ordered dispatch over a capability's providers.

The same walk is used for every capability; a ``DispatchPolicy`` decides
what a provider's return value means:

- FIRST_SUCCESS: None means "declined", continue. Anything else wins.
- FIRST_SUCCESS_OR_ABORT: An optional probe gates each provider. A result
  reporting an error aborts the whole chain; a successful result wins.
- BROADCAST: Every provider is invoked; return values are ignored.

Before every provider call (probe included) the dispatch's
``CancellationToken`` is polled. A cancelled token stops the walk with
``DispatchStatus.CANCELLED``; no further provider is tried. A call already
in progress always completes.

Example:
    >>> dispatcher = Dispatcher()
    >>> outcome = dispatcher.run(
    ...     Capability.SUGGEST_VIDEO_STREAM,
    ...     index[Capability.SUGGEST_VIDEO_STREAM],
    ...     lambda p: p.suggest_video(streams),
    ...     guard.token(CounterKind.ITEM),
    ...     DispatchPolicy.FIRST_SUCCESS,
    ... )
    >>> if outcome.status is DispatchStatus.SUCCESS:
    ...     stream = outcome.value
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from playpath.core.capabilities import Capability
from playpath.core.provider import Provider
from playpath.observability import ObservabilityHub
from playpath.observability.records import CancellationRecord, DispatchRecord
from playpath.session.guard import CancellationToken

logger = logging.getLogger(__name__)


class DispatchPolicy(str, Enum):
    """How a capability's provider results are interpreted."""

    FIRST_SUCCESS = "first_success"
    FIRST_SUCCESS_OR_ABORT = "first_success_or_abort"
    BROADCAST = "broadcast"


class DispatchStatus(str, Enum):
    """Final state of a dispatch."""

    SUCCESS = "success"        # A provider produced the result
    ERROR = "error"            # A provider reported an error; chain aborted
    CANCELLED = "cancelled"    # Interrupted or superseded at a poll point
    EXHAUSTED = "exhausted"    # No provider produced a result
    COMPLETED = "completed"    # Broadcast reached every provider


@dataclass
class DispatchOutcome:
    """Result of one dispatch.

    Attributes:
        status: How the dispatch ended.
        value: The winning (or error-reporting) provider's return value.
        provider: The provider that produced ``value``.
        tried: Names of the providers invoked, in order.
    """

    status: DispatchStatus
    value: Any = None
    provider: Optional[Provider] = None
    tried: List[str] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return self.status is DispatchStatus.CANCELLED


def reports_error(value: Any) -> bool:
    """Default error test: the value carries a non-None ``error``."""
    return getattr(value, "error", None) is not None


class Dispatcher:
    """Runs dispatch chains and reports them to the observability hub.

    Args:
        isolate_faults: When True, an exception raised by a provider is
            logged and treated as that provider declining. When False the
            exception propagates to the caller of the dispatch.
        log_prefix: Prefix for log messages (the owning handler's id).
    """

    def __init__(self, isolate_faults: bool = False, log_prefix: str = ""):
        self.isolate_faults = isolate_faults
        self._log_prefix = log_prefix
        self._hub = ObservabilityHub.get_instance()

    def run(
        self,
        capability: Capability,
        providers: Sequence[Provider],
        invoke: Callable[[Provider], Any],
        token: CancellationToken,
        policy: DispatchPolicy,
        probe: Optional[Callable[[Provider], bool]] = None,
        is_error: Callable[[Any], bool] = reports_error,
    ) -> DispatchOutcome:
        """Walk ``providers`` in order under ``policy``.

        Args:
            capability: Capability being dispatched (for tracing).
            providers: Providers already in dispatch order.
            invoke: Calls the capability operation on one provider.
            token: Cancellation token captured when the dispatch began.
            policy: Result interpretation policy.
            probe: Optional gate; a provider whose probe returns False is
                skipped without calling ``invoke``.
            is_error: Tells whether a value reports an error
                (FIRST_SUCCESS_OR_ABORT only).

        Returns:
            The dispatch outcome.
        """
        start_ns = time.perf_counter_ns()
        tried: List[str] = []
        outcome = None

        for provider in providers:
            if token.is_cancelled:
                outcome = DispatchOutcome(DispatchStatus.CANCELLED, tried=tried)
                self._emit_cancel(capability, provider, token)
                break

            if probe is not None and not self._call(provider, probe, False):
                logger.debug(f"{self._log_prefix}[{provider.name}] declined {capability.value}")
                continue

            tried.append(provider.name)
            value = self._call(provider, invoke, None)

            if policy is DispatchPolicy.BROADCAST or value is None:
                continue

            if policy is DispatchPolicy.FIRST_SUCCESS_OR_ABORT and is_error(value):
                outcome = DispatchOutcome(DispatchStatus.ERROR, value, provider, tried)
            else:
                outcome = DispatchOutcome(DispatchStatus.SUCCESS, value, provider, tried)
            break

        if outcome is None:
            status = (
                DispatchStatus.COMPLETED
                if policy is DispatchPolicy.BROADCAST
                else DispatchStatus.EXHAUSTED
            )
            outcome = DispatchOutcome(status, tried=tried)

        self._emit_dispatch(capability, policy, outcome, start_ns)
        return outcome

    def _call(self, provider: Provider, fn: Callable[[Provider], Any], declined: Any) -> Any:
        if not self.isolate_faults:
            return fn(provider)
        try:
            return fn(provider)
        except Exception:
            logger.error(
                f"{self._log_prefix}[{provider.name}] raised during dispatch, skipping",
                exc_info=True,
            )
            return declined

    def _emit_dispatch(
        self,
        capability: Capability,
        policy: DispatchPolicy,
        outcome: DispatchOutcome,
        start_ns: int,
    ) -> None:
        if not self._hub.enabled:
            return
        self._hub.emit(DispatchRecord(
            capability=capability.value,
            policy=policy.value,
            status=outcome.status.value,
            tried=list(outcome.tried),
            winner=outcome.provider.name if outcome.provider else None,
            elapsed_ms=(time.perf_counter_ns() - start_ns) / 1e6,
        ))

    def _emit_cancel(
        self,
        capability: Capability,
        pending: Provider,
        token: CancellationToken,
    ) -> None:
        if not self._hub.enabled:
            return
        self._hub.emit(CancellationRecord(
            capability=capability.value,
            pending_provider=pending.name,
            counter=token.kind.value,
            snapshot_epoch=token.epoch,
            current_epoch=token.guard.snapshot(token.kind),
            interrupted=token.guard.interrupt,
        ))
