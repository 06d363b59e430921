"""Provider discovery.

This module turns installed ``playpath.providers`` entry points into
provider descriptors.
"""

from playpath.plugin.discovery import (
    discover_providers,
    load_provider,
    entry_point_factory,
    descriptors_from_entry_points,
    PROVIDERS_GROUP,
)

__all__ = [
    "discover_providers",
    "load_provider",
    "entry_point_factory",
    "descriptors_from_entry_points",
    "PROVIDERS_GROUP",
]
