"""Core abstractions for playpath.

This module provides the data model shared by the handler and its providers:

Providers:
- Provider: Base class for all plugins
- ProviderDescriptor: Static registration entry (name, factory, version)

Capabilities:
- Capability: Enum of optional capability kinds
- OpenProvider, OpenSubtitlesProvider, ScrapeItemProvider, Suggest*Provider

Results:
- OpenResult: Success payload or error message
- PlaypathError and subclasses

Media:
- Playlist, PlaylistItem and stream value types
"""

from playpath.core.provider import Provider, ProviderDescriptor, DEFAULT_PRIORITY
from playpath.core.capabilities import (
    Capability,
    OpenProvider,
    OpenSubtitlesProvider,
    ScrapeItemProvider,
    SuggestPlaylistItemProvider,
    SuggestAudioStreamProvider,
    SuggestVideoStreamProvider,
    SuggestExternalAudioProvider,
    SuggestExternalVideoProvider,
    capabilities_of,
)
from playpath.core.media import (
    Playlist,
    PlaylistItem,
    AudioStream,
    VideoStream,
    DataStream,
    ExternalAudioStream,
    ExternalVideoStream,
)
from playpath.core.results import (
    OpenResult,
    CANCELLED,
    NO_PROVIDER,
    PlaypathError,
    NoActiveProviderError,
    DuplicateProviderError,
    ProviderLoadError,
)

__all__ = [
    # Providers
    "Provider",
    "ProviderDescriptor",
    "DEFAULT_PRIORITY",
    # Capabilities
    "Capability",
    "OpenProvider",
    "OpenSubtitlesProvider",
    "ScrapeItemProvider",
    "SuggestPlaylistItemProvider",
    "SuggestAudioStreamProvider",
    "SuggestVideoStreamProvider",
    "SuggestExternalAudioProvider",
    "SuggestExternalVideoProvider",
    "capabilities_of",
    # Media
    "Playlist",
    "PlaylistItem",
    "AudioStream",
    "VideoStream",
    "DataStream",
    "ExternalAudioStream",
    "ExternalVideoStream",
    # Results
    "OpenResult",
    "CANCELLED",
    "NO_PROVIDER",
    "PlaypathError",
    "NoActiveProviderError",
    "DuplicateProviderError",
    "ProviderLoadError",
]
