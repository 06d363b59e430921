"""Validate command for playpath CLI."""

import sys
from pathlib import Path

from playpath.config import load_yaml_config, ConfigLoadError
from playpath.plugin.discovery import discover_providers


def cmd_validate(config_path: str, check_plugins: bool = False) -> int:
    """Validate a configuration file.

    Args:
        config_path: Path to the YAML configuration file.
        check_plugins: Whether to verify provider availability.

    Returns:
        Exit code (0 for success, 1 for validation errors).
    """
    path = Path(config_path)

    if not path.exists():
        print(f"Error: Configuration file not found: {path}", file=sys.stderr)
        return 1

    print(f"Validating: {path}")

    try:
        config = load_yaml_config(path)
    except ConfigLoadError as e:
        print(f"Validation failed: {e}", file=sys.stderr)
        return 1

    handler = config.handler
    print(f"  Version: {config.version}")
    print(f"  Fault isolation: {'on' if handler.isolate_faults else 'off'}")
    print(f"  Duplicate names: {handler.duplicate_names}")
    print(f"  Providers: {len(handler.providers)}")

    for provider in handler.providers:
        info = provider.name
        if provider.entry_point:
            info += f" ({provider.entry_point})"
        if provider.priority is not None:
            info += f" priority={provider.priority}"
        if not provider.enabled:
            info += " [disabled]"
        print(f"    - {info}")

    print(f"  Observability: {config.observability.level}")
    for sink in config.observability.sinks:
        sink_info = sink.type
        if sink.path:
            sink_info += f" -> {sink.path}"
        print(f"    - {sink_info}")

    if check_plugins:
        print("\nChecking provider availability...")

        available = set(discover_providers().keys())
        errors = [
            f"Provider '{p.name}' not found (entry point '{p.entry_point_name}')"
            for p in handler.providers
            if p.enabled and p.entry_point_name not in available
        ]

        if errors:
            print("\nProvider errors:", file=sys.stderr)
            for err in errors:
                print(f"  - {err}", file=sys.stderr)
            return 1
        print("  All providers available")

    print("\nConfiguration is valid.")
    return 0
