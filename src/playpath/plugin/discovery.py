"""Provider discovery via Python entry points.

Provider packages register themselves under the ``playpath.providers``
entry point group in their pyproject.toml:

```toml
[project.entry-points."playpath.providers"]
http = "myplugin.providers:HttpOpener"
subs = "myplugin.providers:SubtitlesOpener"
```

Discovery only produces ``ProviderDescriptor`` entries; the handler never
looks up provider types by name at runtime.

Example:
    >>> from playpath.plugin import descriptors_from_entry_points
    >>> handler = ProviderHandler(descriptors_from_entry_points(["http", "subs"]))
"""

from importlib.metadata import entry_points
from typing import Any, Dict, Iterable, List, Optional

from playpath.core.provider import Provider, ProviderDescriptor, ProviderFactory

PROVIDERS_GROUP = "playpath.providers"


def discover_providers() -> Dict[str, Any]:
    """Discover all installed provider entry points.

    Returns:
        Dict mapping provider names to their entry points.
    """
    return {ep.name: ep for ep in entry_points(group=PROVIDERS_GROUP)}


def load_provider(name: str) -> ProviderFactory:
    """Load a provider factory by entry point name.

    Raises:
        KeyError: If no provider with the given name is registered.
        ImportError: If the provider cannot be imported.
    """
    providers = discover_providers()
    if name not in providers:
        raise KeyError(
            f"No provider registered with name '{name}'. "
            f"Available: {list(providers.keys())}"
        )
    return providers[name].load()


def entry_point_factory(ep: Any) -> ProviderFactory:
    """Wrap an entry point so importing it happens at provider construction.

    An import failure then surfaces as a provider load failure, which the
    registry logs and skips instead of aborting handler construction.
    """

    def factory(**kwargs) -> Provider:
        return ep.load()(**kwargs)

    factory.__name__ = f"load_{ep.name}"
    return factory


def descriptors_from_entry_points(
    names: Optional[Iterable[str]] = None,
) -> List[ProviderDescriptor]:
    """Build descriptors for installed providers.

    Args:
        names: Entry point names in registration order. Defaults to every
            installed provider, sorted by name.

    Returns:
        One descriptor per provider.

    Raises:
        KeyError: If a requested name is not installed.
    """
    available = discover_providers()
    if names is None:
        names = sorted(available)

    descriptors = []
    for name in names:
        if name not in available:
            raise KeyError(
                f"No provider registered with name '{name}'. "
                f"Available: {sorted(available)}"
            )
        ep = available[name]
        version = ep.dist.version if getattr(ep, "dist", None) else "0.0.0"
        descriptors.append(ProviderDescriptor(
            name=name,
            factory=entry_point_factory(ep),
            version=version,
        ))
    return descriptors
