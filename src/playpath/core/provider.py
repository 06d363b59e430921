"""Provider base class and static provider descriptors.

Providers are the plugins a ``ProviderHandler`` orchestrates. A provider
joins a dispatch chain by implementing one of the capability interfaces in
``playpath.core.capabilities`` in addition to this base class.

Example:
    >>> from playpath.core import Provider, OpenProvider, OpenResult
    >>>
    >>> class HttpOpener(Provider, OpenProvider):
    ...     priority = 100
    ...
    ...     def can_open(self) -> bool:
    ...         return self.handler.url.startswith("http")
    ...
    ...     def open(self):
    ...         return OpenResult(payload=self._connect())
    ...
    ...     def open_item(self):
    ...         return OpenResult()
    >>>
    >>> descriptor = ProviderDescriptor(name="http", factory=HttpOpener)
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from playpath.core.capabilities import Capability
    from playpath.session.handler import ProviderHandler


DEFAULT_PRIORITY = 1000


class Provider:
    """Base class for all providers.

    The handler fills in ``name``, ``version`` and ``config`` from the
    provider's descriptor right after construction, then calls
    ``on_loaded``. Subclasses override only the lifecycle hooks they need.

    Attributes:
        name: Unique provider name within a capability.
        version: Provider version string.
        priority: Default dispatch priority; lower values are tried first.
        handler: The owning handler, or None outside of a handler.
        config: Provider-specific options from the descriptor.
    """

    name: str = ""
    version: str = "0.0.0"
    priority: int = DEFAULT_PRIORITY
    handler: Optional["ProviderHandler"] = None

    @property
    def config(self) -> Dict[str, Any]:
        return self.__dict__.setdefault("_config", {})

    @config.setter
    def config(self, value: Dict[str, Any]) -> None:
        self.__dict__["_config"] = value

    def priority_for(self, capability: "Capability") -> int:
        """Priority of this provider within one capability's chain.

        Args:
            capability: The capability being dispatched.

        Returns:
            The configured override for ``capability`` or ``priority``.
        """
        return self.__dict__.get("_priorities", {}).get(capability, self.priority)

    def set_priority(self, capability: "Capability", priority: int) -> None:
        self.__dict__.setdefault("_priorities", {})[capability] = priority

    def on_loaded(self) -> None:
        """Called once after the handler attached the provider."""
        pass

    def on_initializing(self) -> None:
        """Called before a new open attempt."""
        pass

    def on_initialized(self) -> None:
        """Called once the handler has reset its state for an open attempt."""
        pass

    def on_initializing_switch(self) -> None:
        """Called before an item switch."""
        pass

    def on_initialized_switch(self) -> None:
        """Called after an item switch has been prepared."""
        pass

    def dispose(self) -> None:
        """Release provider resources. Called once at handler teardown."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} priority={self.priority}>"


ProviderFactory = Callable[..., Provider]


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static description of a provider, supplied at handler construction.

    Attributes:
        name: Registered provider name.
        factory: Callable producing the provider instance. Receives
            ``config`` as keyword arguments when it is non-empty.
        version: Provider version string.
        config: Keyword arguments passed to ``factory``.
        priority: Overrides the provider's default priority when set.
        priorities: Per-capability priority overrides.
    """

    name: str
    factory: ProviderFactory
    version: str = "0.0.0"
    config: Dict[str, Any] = field(default_factory=dict)
    priority: Optional[int] = None
    priorities: Dict["Capability", int] = field(default_factory=dict)

    def create(self) -> Provider:
        """Build a provider instance and stamp the descriptor metadata on it."""
        provider = self.factory(**self.config)
        provider.name = self.name
        provider.version = self.version
        provider.config = dict(self.config)
        if self.priority is not None:
            provider.priority = self.priority
        for capability, priority in self.priorities.items():
            provider.set_priority(capability, priority)
        return provider
