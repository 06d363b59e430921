"""Providers command for playpath CLI."""

import sys
from typing import Optional

from playpath.config import load_yaml_config
from playpath.core.capabilities import Capability
from playpath.core.results import PlaypathError
from playpath.plugin.discovery import discover_providers


def cmd_providers_list(config_path: Optional[str] = None) -> int:
    """List installed providers, and the capability index of a config.

    Returns:
        Exit code (0 for success, 1 for configuration errors).
    """
    print("Installed Providers:")
    print("-" * 40)

    providers = discover_providers()
    if providers:
        for name, ep in sorted(providers.items()):
            print(f"  {name:<20} {ep.value}")
    else:
        print("  (none found)")

    if config_path is None:
        print()
        print("To register providers, add entry points in pyproject.toml:")
        print('  [project.entry-points."playpath.providers"]')
        print('  my_provider = "mypackage.providers:MyProvider"')
        return 0

    from playpath.session.handler import ProviderHandler

    try:
        config = load_yaml_config(config_path)
        handler = ProviderHandler.from_config(config.handler)
    except (FileNotFoundError, PlaypathError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with handler:
        print()
        print(f"Capability Index ({len(handler.providers)} loaded):")
        print("-" * 40)
        for capability in Capability:
            chain = handler.index[capability]
            if not chain:
                continue
            print(f"  {capability.value}:")
            for provider in chain:
                print(f"    {provider.priority_for(capability):>6}  {provider.name}")

    return 0
