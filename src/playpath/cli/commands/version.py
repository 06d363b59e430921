"""Version command for playpath CLI."""

import sys
from importlib.metadata import version, PackageNotFoundError

from playpath.plugin.discovery import PROVIDERS_GROUP, discover_providers


def _installed(pkg: str) -> str:
    try:
        return f"v{version(pkg)}"
    except PackageNotFoundError:
        return "not installed"


def cmd_version() -> int:
    """Display version information.

    Returns:
        Exit code (always 0).
    """
    pp_version = _installed("playpath")
    if pp_version == "not installed":
        pp_version = "development"

    print(f"playpath {pp_version}")
    print(f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")

    print("\nDependencies:")
    for pkg, desc in (("pydantic", "Config validation"), ("pyyaml", "YAML config support")):
        print(f"  {pkg}: {_installed(pkg)} ({desc})")

    print(f"\nProviders ({PROVIDERS_GROUP}): {len(discover_providers())} installed")
    return 0
