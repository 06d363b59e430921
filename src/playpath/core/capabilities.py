"""Optional capability contracts a provider may implement.

Each capability is an abstract interface. A provider joins the dispatch
chain of every capability it implements; the handler resolves the set once
when the provider is registered (see ``capabilities_of``).

Capabilities:
    OPEN: Open the requested input and its playlist items.
    OPEN_SUBTITLES: Open a subtitles input. Never combined with OPEN.
    SCRAPE_ITEM: Enrich a playlist item in place.
    SUGGEST_PLAYLIST_ITEM: Pick the playlist item to play first.
    SUGGEST_AUDIO_STREAM / SUGGEST_VIDEO_STREAM: Pick among embedded streams.
    SUGGEST_EXTERNAL_AUDIO / SUGGEST_EXTERNAL_VIDEO: Source a stream from
        outside the input.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import FrozenSet, Optional, Sequence

from playpath.core.media import (
    AudioStream,
    ExternalAudioStream,
    ExternalVideoStream,
    PlaylistItem,
    VideoStream,
)
from playpath.core.results import OpenResult


class Capability(str, Enum):
    """Kinds of optional provider capabilities."""

    OPEN = "open"
    OPEN_SUBTITLES = "open_subtitles"
    SCRAPE_ITEM = "scrape_item"
    SUGGEST_PLAYLIST_ITEM = "suggest_playlist_item"
    SUGGEST_AUDIO_STREAM = "suggest_audio_stream"
    SUGGEST_VIDEO_STREAM = "suggest_video_stream"
    SUGGEST_EXTERNAL_AUDIO = "suggest_external_audio"
    SUGGEST_EXTERNAL_VIDEO = "suggest_external_video"


class OpenProvider(ABC):
    """Opens the requested input and, later, its playlist items."""

    @abstractmethod
    def can_open(self) -> bool:
        """Side-effect free probe: can this provider handle the input?"""
        ...

    @abstractmethod
    def open(self) -> Optional[OpenResult]:
        """Open the input.

        Returns:
            A successful result, a result carrying an error, or None when
            the provider turns out not to be applicable.
        """
        ...

    @abstractmethod
    def open_item(self) -> Optional[OpenResult]:
        """Open the currently selected playlist item."""
        ...


class OpenSubtitlesProvider(ABC):
    """Opens a subtitles input."""

    @abstractmethod
    def open_subtitles(self) -> Optional[OpenResult]:
        ...


class ScrapeItemProvider(ABC):
    """Fills in metadata of a playlist item."""

    @abstractmethod
    def scrape_item(self, item: PlaylistItem) -> None:
        """Mutate ``item`` in place."""
        ...


class SuggestPlaylistItemProvider(ABC):

    @abstractmethod
    def suggest_item(self) -> Optional[PlaylistItem]:
        ...


class SuggestAudioStreamProvider(ABC):

    @abstractmethod
    def suggest_audio(self, candidates: Sequence[AudioStream]) -> Optional[AudioStream]:
        """Pick one of ``candidates``. The sequence must not be mutated."""
        ...


class SuggestVideoStreamProvider(ABC):

    @abstractmethod
    def suggest_video(self, candidates: Sequence[VideoStream]) -> Optional[VideoStream]:
        """Pick one of ``candidates``. The sequence must not be mutated."""
        ...


class SuggestExternalAudioProvider(ABC):

    @abstractmethod
    def suggest_external_audio(self) -> Optional[ExternalAudioStream]:
        ...


class SuggestExternalVideoProvider(ABC):

    @abstractmethod
    def suggest_external_video(self) -> Optional[ExternalVideoStream]:
        ...


CAPABILITY_INTERFACES = {
    Capability.OPEN: OpenProvider,
    Capability.OPEN_SUBTITLES: OpenSubtitlesProvider,
    Capability.SCRAPE_ITEM: ScrapeItemProvider,
    Capability.SUGGEST_PLAYLIST_ITEM: SuggestPlaylistItemProvider,
    Capability.SUGGEST_AUDIO_STREAM: SuggestAudioStreamProvider,
    Capability.SUGGEST_VIDEO_STREAM: SuggestVideoStreamProvider,
    Capability.SUGGEST_EXTERNAL_AUDIO: SuggestExternalAudioProvider,
    Capability.SUGGEST_EXTERNAL_VIDEO: SuggestExternalVideoProvider,
}


def capabilities_of(provider: object) -> FrozenSet[Capability]:
    """Resolve the capabilities a provider implements.

    OPEN and OPEN_SUBTITLES are mutually exclusive: a provider implementing
    both is only registered for OPEN.

    Args:
        provider: Provider instance to inspect.

    Returns:
        Frozen set of implemented capabilities.
    """
    found = {
        capability
        for capability, interface in CAPABILITY_INTERFACES.items()
        if isinstance(provider, interface)
    }
    if Capability.OPEN in found:
        found.discard(Capability.OPEN_SUBTITLES)
    return frozenset(found)
