"""Media value types exchanged between the handler and its providers.

The handler never inspects streams beyond logging a short description;
providers produce and consume them. ``Playlist`` is the collaborator
shared between the handler and the provider that opened the input.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PlaylistItem:
    """A single entry of a playlist.

    Attributes:
        index: Position of the item in the playlist.
        title: Display title.
        url: Location the opening provider resolves the item from.
        tags: Free-form metadata written by scrape providers.
    """

    index: int = 0
    title: str = ""
    url: str = ""
    tags: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AudioStream:
    """An audio stream embedded in the opened input."""

    index: int = 0
    codec: str = ""
    sample_rate: int = 0
    channels: int = 0
    language: Optional[str] = None


@dataclass
class VideoStream:
    """A video stream embedded in the opened input."""

    index: int = 0
    codec: str = ""
    width: int = 0
    height: int = 0
    fps: float = 0.0


@dataclass
class DataStream:
    """A data stream (e.g. timed metadata) embedded in the opened input."""

    index: int = 0
    codec: str = ""


@dataclass
class ExternalAudioStream:
    """An audio stream sourced by a provider from outside the input."""

    url: str = ""
    codec: str = ""
    sample_rate: int = 0
    language: Optional[str] = None


@dataclass
class ExternalVideoStream:
    """A video stream sourced by a provider from outside the input."""

    url: str = ""
    codec: str = ""
    width: int = 0
    height: int = 0
    fps: float = 0.0


class Playlist:
    """Playlist collaborator shared by the handler and the opening provider.

    Only the bookkeeping the handler relies on is kept here: the item list,
    the selection with its neighbours, and the completion state.
    """

    def __init__(self) -> None:
        self.items: List[PlaylistItem] = []
        self.selected: Optional[PlaylistItem] = None
        self.prev_item: Optional[PlaylistItem] = None
        self.next_item: Optional[PlaylistItem] = None
        self.completed = False
        self.expecting_items = 0

    def add_item(self, item: PlaylistItem) -> None:
        item.index = len(self.items)
        self.items.append(item)

    def reset(self) -> None:
        """Drop all items and transient state."""
        self.items.clear()
        self.selected = None
        self.prev_item = None
        self.next_item = None
        self.completed = False
        self.expecting_items = 0

    def update_prev_next_item(self) -> None:
        """Recompute the neighbours of the selected item."""
        self.prev_item = None
        self.next_item = None

        pos = next(
            (i for i, item in enumerate(self.items) if item is self.selected),
            None,
        )
        if pos is None:
            return

        if pos > 0:
            self.prev_item = self.items[pos - 1]
        if pos < len(self.items) - 1:
            self.next_item = self.items[pos + 1]

    def __len__(self) -> int:
        return len(self.items)
