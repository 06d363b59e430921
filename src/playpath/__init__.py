"""playpath - Provider orchestration for media sessions.

playpath loads pluggable providers (source openers, metadata scrapers,
stream-selection advisors), indexes them by the capabilities they
implement, and dispatches operations to them in priority order with
cooperative, session-aware cancellation.

Quick Start:
    >>> import playpath as pp
    >>>
    >>> class HttpOpener(pp.Provider, pp.OpenProvider):
    ...     priority = 100
    ...     def can_open(self):
    ...         return True
    ...     def open(self):
    ...         return pp.OpenResult(payload="stream")
    ...     def open_item(self):
    ...         return pp.OpenResult()
    >>>
    >>> handler = pp.ProviderHandler([pp.ProviderDescriptor("http", HttpOpener)])
    >>> handler.on_initializing()
    >>> handler.on_initialized()
    >>> res = handler.open()
    >>> res.success
    True

For advanced usage, see:
- playpath.session: SessionGuard, Dispatcher, CapabilityRegistry
- playpath.config: YAML handler configuration
- playpath.observability: dispatch tracing
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("playpath")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"

from playpath.core import (
    Provider,
    ProviderDescriptor,
    Capability,
    OpenProvider,
    OpenSubtitlesProvider,
    ScrapeItemProvider,
    SuggestPlaylistItemProvider,
    SuggestAudioStreamProvider,
    SuggestVideoStreamProvider,
    SuggestExternalAudioProvider,
    SuggestExternalVideoProvider,
    Playlist,
    PlaylistItem,
    AudioStream,
    VideoStream,
    DataStream,
    ExternalAudioStream,
    ExternalVideoStream,
    OpenResult,
    CANCELLED,
    NO_PROVIDER,
    PlaypathError,
    NoActiveProviderError,
    DuplicateProviderError,
)
from playpath.session import (
    ProviderHandler,
    OpenSession,
    SuggestionResult,
    SessionGuard,
    CounterKind,
    DispatchPolicy,
    DispatchStatus,
)

__all__ = [
    "__version__",
    # Handler
    "ProviderHandler",
    "OpenSession",
    "SuggestionResult",
    "SessionGuard",
    "CounterKind",
    "DispatchPolicy",
    "DispatchStatus",
    # Providers
    "Provider",
    "ProviderDescriptor",
    "Capability",
    "OpenProvider",
    "OpenSubtitlesProvider",
    "ScrapeItemProvider",
    "SuggestPlaylistItemProvider",
    "SuggestAudioStreamProvider",
    "SuggestVideoStreamProvider",
    "SuggestExternalAudioProvider",
    "SuggestExternalVideoProvider",
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
]
