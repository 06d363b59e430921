"""Capability registry: builds providers and indexes them by capability.

The registry is populated once, when a handler is constructed, and is
immutable afterwards. Providers are looked up per capability in dispatch
order: ascending priority, ties broken by registration order.

Example:
    >>> registry = CapabilityRegistry()
    >>> providers = registry.load([
    ...     ProviderDescriptor(name="http", factory=HttpOpener),
    ...     ProviderDescriptor(name="lang", factory=LanguageSuggester),
    ... ])
    >>> index = registry.index(providers)
    >>> [p.name for p in index[Capability.OPEN]]
    ['http']
"""

import logging
import time
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Literal, Mapping, Optional, Tuple, TYPE_CHECKING

from playpath.core.capabilities import Capability, capabilities_of
from playpath.core.provider import Provider, ProviderDescriptor
from playpath.core.results import DuplicateProviderError, ProviderLoadError
from playpath.observability import ObservabilityHub
from playpath.observability.records import ProviderLoadRecord

if TYPE_CHECKING:
    from playpath.session.handler import ProviderHandler

logger = logging.getLogger(__name__)

DuplicatePolicy = Literal["error", "replace"]


class CapabilityIndex(Mapping[Capability, Tuple[Provider, ...]]):
    """Read-only mapping of capability to providers in dispatch order.

    Every capability kind is present; kinds without providers map to an
    empty tuple.
    """

    def __init__(self, chains: Dict[Capability, Tuple[Provider, ...]]):
        self._chains = MappingProxyType(
            {capability: tuple(chains.get(capability, ())) for capability in Capability}
        )

    def __getitem__(self, capability: Capability) -> Tuple[Provider, ...]:
        return self._chains[capability]

    def __iter__(self) -> Iterator[Capability]:
        return iter(self._chains)

    def __len__(self) -> int:
        return len(self._chains)

    def names(self, capability: Capability) -> List[str]:
        return [provider.name for provider in self._chains[capability]]


class CapabilityRegistry:
    """Builds provider instances and the capability index.

    Args:
        duplicate_names: What to do when two providers share a name within
            a capability. ``"error"`` raises ``DuplicateProviderError``;
            ``"replace"`` lets the later registration take the slot.
        log_prefix: Prefix for log messages (the owning handler's id).
    """

    def __init__(
        self,
        duplicate_names: DuplicatePolicy = "error",
        log_prefix: str = "",
    ):
        if duplicate_names not in ("error", "replace"):
            raise ValueError(f"Unknown duplicate name policy: {duplicate_names}")
        self._duplicate_names = duplicate_names
        self._log_prefix = log_prefix
        self._hub = ObservabilityHub.get_instance()

    def load(
        self,
        descriptors: Iterable[ProviderDescriptor],
        handler: Optional["ProviderHandler"] = None,
    ) -> List[Provider]:
        """Construct one provider per descriptor, in order.

        A descriptor whose factory raises is logged and skipped; loading
        continues with the next one. An empty result is valid.

        Args:
            descriptors: Provider descriptors in registration order.
            handler: Handler to attach to each provider.

        Returns:
            Successfully constructed providers in registration order.
        """
        providers: List[Provider] = []

        for descriptor in descriptors:
            start_ns = time.perf_counter_ns()
            try:
                provider = descriptor.create()
                provider.handler = handler
                provider.on_loaded()
            except Exception as e:
                error = ProviderLoadError(descriptor.name, e)
                logger.error(f"{self._log_prefix}{error}", exc_info=True)
                self._emit_load(descriptor, start_ns, error=str(e))
                continue

            providers.append(provider)
            self._emit_load(descriptor, start_ns)

        return providers

    def index(self, providers: Iterable[Provider]) -> CapabilityIndex:
        """Index providers under every capability they implement.

        Args:
            providers: Providers in registration order.

        Returns:
            The immutable capability index.

        Raises:
            DuplicateProviderError: If two providers implementing the same
                capability share a name and the policy is ``"error"``.
        """
        slots: Dict[Capability, Dict[str, Tuple[int, Provider]]] = {
            capability: {} for capability in Capability
        }

        for order, provider in enumerate(providers):
            for capability in capabilities_of(provider):
                by_name = slots[capability]
                if provider.name in by_name:
                    if self._duplicate_names == "error":
                        raise DuplicateProviderError(provider.name)
                    logger.warning(
                        f"{self._log_prefix}[{provider.name}] replaces an earlier "
                        f"provider for {capability.value}"
                    )
                by_name[provider.name] = (order, provider)

        chains = {}
        for capability, by_name in slots.items():
            entries = sorted(
                by_name.values(),
                key=lambda entry: (entry[1].priority_for(capability), entry[0]),
            )
            chains[capability] = tuple(provider for _, provider in entries)

        return CapabilityIndex(chains)

    def _emit_load(
        self,
        descriptor: ProviderDescriptor,
        start_ns: int,
        error: Optional[str] = None,
    ) -> None:
        if not self._hub.enabled:
            return
        self._hub.emit(ProviderLoadRecord(
            provider=descriptor.name,
            version=descriptor.version,
            loaded=error is None,
            error=error,
            load_ms=(time.perf_counter_ns() - start_ns) / 1e6,
        ))
