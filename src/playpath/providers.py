"""Built-in providers used for smoke tests and CLI verification.

Both are registered as entry points in pyproject.toml so an installed
playpath always has something to discover.
"""

from typing import Optional, Sequence

from playpath.core.capabilities import (
    OpenProvider,
    SuggestAudioStreamProvider,
    SuggestVideoStreamProvider,
)
from playpath.core.media import AudioStream, VideoStream
from playpath.core.provider import Provider
from playpath.core.results import OpenResult


class DummyOpenProvider(Provider, OpenProvider):
    """Opens anything and reports how often it was asked to.

    Args:
        payload: Value returned as the open result payload.
    """

    priority = 10000

    def __init__(self, payload: str = "dummy"):
        self._payload = payload
        self.open_count = 0
        self.open_item_count = 0

    def can_open(self) -> bool:
        return True

    def open(self) -> Optional[OpenResult]:
        self.open_count += 1
        return OpenResult(payload=self._payload)

    def open_item(self) -> Optional[OpenResult]:
        self.open_item_count += 1
        return OpenResult(payload=self._payload)


class FirstStreamSuggester(Provider, SuggestAudioStreamProvider, SuggestVideoStreamProvider):
    """Suggests the first candidate stream. Lowest precedence fallback."""

    priority = 10000

    def suggest_audio(self, candidates: Sequence[AudioStream]) -> Optional[AudioStream]:
        return candidates[0] if candidates else None

    def suggest_video(self, candidates: Sequence[VideoStream]) -> Optional[VideoStream]:
        return candidates[0] if candidates else None
