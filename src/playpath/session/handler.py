"""Provider handler: lifecycle coordination and capability operations.

A ``ProviderHandler`` owns one set of provider instances for the lifetime
of a media session host. It broadcasts lifecycle events to every provider,
advances the session counters at the right boundaries, and exposes one
operation per capability, each backed by a ``Dispatcher`` chain.

Typical open sequence:
    >>> handler = ProviderHandler(descriptors)
    >>> handler.on_initializing()      # new open attempt, both epochs bump
    >>> handler.on_initialized()       # session and playlist reset
    >>> res = handler.open()
    >>> if res.success:
    ...     res = handler.open_item(res.session)
    >>> handler.teardown()

Item switch:
    >>> handler.on_initializing_switch()
    >>> handler.on_initialized_switch()
    >>> res = handler.open_item()

Threading:
    All operations run on the session's own thread. ``cancel()`` and the
    ``interrupt`` property may be used from any thread; an in-flight
    dispatch notices them at its next poll point.
"""

import itertools
import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, TYPE_CHECKING

from playpath.core.capabilities import (
    Capability,
    OpenProvider,
    OpenSubtitlesProvider,
)
from playpath.core.media import (
    AudioStream,
    DataStream,
    ExternalAudioStream,
    ExternalVideoStream,
    Playlist,
    PlaylistItem,
    VideoStream,
)
from playpath.core.provider import Provider, ProviderDescriptor
from playpath.core.results import (
    NO_PROVIDER,
    DuplicateProviderError,
    NoActiveProviderError,
    OpenResult,
)
from playpath.observability import ObservabilityHub
from playpath.observability.records import LifecycleRecord
from playpath.session.dispatcher import (
    DispatchOutcome,
    DispatchPolicy,
    DispatchStatus,
    Dispatcher,
)
from playpath.session.guard import CancellationToken, CounterKind, SessionGuard
from playpath.session.registry import CapabilityIndex, CapabilityRegistry, DuplicatePolicy

if TYPE_CHECKING:
    from playpath.config.schema import HandlerSchema

logger = logging.getLogger(__name__)

_unique_ids = itertools.count(1)


@dataclass(frozen=True)
class OpenSession:
    """State produced by the most recent successful open.

    Attributes:
        open_epoch: Open epoch the session was created under.
        provider: Provider that won the open dispatch (current winner).
        subtitles_provider: Provider that won the open-subtitles dispatch.
    """

    open_epoch: int = 0
    provider: Optional[OpenProvider] = None
    subtitles_provider: Optional[OpenSubtitlesProvider] = None


@dataclass
class SuggestionResult:
    """Result of a suggest-with-fallback operation.

    At most one of ``stream`` and ``external`` is set.
    """

    stream: object = None
    external: object = None
    cancelled: bool = False


class ProviderHandler:
    """Loads providers and dispatches capability operations to them.

    Args:
        descriptors: Provider descriptors in registration order.
        playlist: Playlist collaborator. A new one is created if omitted.
        unique_id: Identifier used in log messages. Auto-assigned if omitted.
        isolate_faults: Treat a provider exception as a decline instead of
            propagating it.
        duplicate_names: Policy for provider name collisions
            (``"error"`` or ``"replace"``).
    """

    def __init__(
        self,
        descriptors: Iterable[ProviderDescriptor] = (),
        playlist: Optional[Playlist] = None,
        unique_id: Optional[int] = None,
        isolate_faults: bool = False,
        duplicate_names: DuplicatePolicy = "error",
    ):
        self.unique_id = unique_id if unique_id is not None else next(_unique_ids)
        self.playlist = playlist if playlist is not None else Playlist()
        self.guard = SessionGuard()
        self.session = OpenSession()
        self.isolate_faults = isolate_faults

        self._log_prefix = f"[#{self.unique_id}]".ljust(8) + " "
        self._hub = ObservabilityHub.get_instance()
        self._dispatcher = Dispatcher(isolate_faults, self._log_prefix)
        self._disposed = False

        registry = CapabilityRegistry(duplicate_names, self._log_prefix)
        self.providers: List[Provider] = registry.load(descriptors, self)
        try:
            self.index: CapabilityIndex = registry.index(self.providers)
        except DuplicateProviderError:
            self.teardown()
            raise

        logger.debug(
            f"{self._log_prefix}Loaded {len(self.providers)} provider(s): "
            f"{[p.name for p in self.providers]}"
        )

    @classmethod
    def from_config(
        cls,
        config: "HandlerSchema",
        playlist: Optional[Playlist] = None,
    ) -> "ProviderHandler":
        """Create a handler from a validated configuration section.

        Providers are resolved through the ``playpath.providers`` entry
        point group.

        Args:
            config: The ``handler`` section of a loaded configuration.
            playlist: Optional playlist collaborator.

        Returns:
            A new handler.
        """
        from playpath.config.loader import build_descriptors

        return cls(
            build_descriptors(config),
            playlist=playlist,
            unique_id=config.unique_id,
            isolate_faults=config.isolate_faults,
            duplicate_names=config.duplicate_names,
        )

    # =========================================================================
    # Cancellation
    # =========================================================================

    @property
    def interrupt(self) -> bool:
        return self.guard.interrupt

    @interrupt.setter
    def interrupt(self, value: bool) -> None:
        self.guard.interrupt = value

    def cancel(self) -> None:
        """Request cancellation of the running dispatch."""
        self.guard.interrupt = True

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def on_initializing(self) -> None:
        """Begin a new open attempt."""
        self.guard.bump_open()
        self._broadcast("initializing", "on_initializing")

    def on_initialized(self) -> None:
        """Drop the previous session and playlist before dispatching the open."""
        self.session = OpenSession(open_epoch=self.guard.snapshot_open_epoch())
        self.playlist.reset()
        self._broadcast("initialized", "on_initialized")

    def on_initializing_switch(self) -> None:
        """Begin an item switch."""
        self.guard.bump_item_switch()
        self._broadcast("initializing_switch", "on_initializing_switch")

    def on_initialized_switch(self) -> None:
        self._broadcast("initialized_switch", "on_initialized_switch")

    def teardown(self) -> None:
        """Dispose every provider in registration order.

        A failing ``dispose`` is logged and does not stop the remaining
        providers from being disposed. Subsequent calls are no-ops.
        """
        if self._disposed:
            return
        self._disposed = True

        for provider in self.providers:
            try:
                provider.dispose()
            except Exception:
                logger.error(
                    f"{self._log_prefix}[{provider.name}] Failed to dispose",
                    exc_info=True,
                )

        self._emit_lifecycle("teardown")

    def __enter__(self) -> "ProviderHandler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.teardown()

    def _broadcast(self, event: str, hook: str) -> None:
        for provider in self.providers:
            getattr(provider, hook)()
        self._emit_lifecycle(event)

    def _emit_lifecycle(self, event: str) -> None:
        if not self._hub.enabled:
            return
        self._hub.emit(LifecycleRecord(
            handler_id=self.unique_id,
            event=event,
            open_epoch=self.guard.snapshot_open_epoch(),
            item_epoch=self.guard.snapshot_item_epoch(),
            provider_count=len(self.providers),
        ))

    # =========================================================================
    # Open
    # =========================================================================

    def open(self) -> OpenResult:
        """Open the input with the first willing Open provider.

        Providers whose ``can_open`` declines are skipped. The first
        provider reporting an error aborts the chain and its result is
        returned as is. On success the provider becomes the session's
        current winner.

        Returns:
            The winning result (with ``session`` set), the aborting error,
            a cancelled result, or a ``NO_PROVIDER`` failure.
        """
        token = self.guard.token(CounterKind.OPEN)
        outcome = self._dispatcher.run(
            Capability.OPEN,
            self.index[Capability.OPEN],
            lambda p: p.open(),
            token,
            DispatchPolicy.FIRST_SUCCESS_OR_ABORT,
            probe=lambda p: p.can_open(),
        )

        result = self._open_result(outcome)
        if outcome.status is DispatchStatus.SUCCESS:
            self.session = replace(
                self.session, open_epoch=token.epoch, provider=outcome.provider
            )
            result.session = self.session
            logger.info(f"{self._log_prefix}[{outcome.provider.name}] Open Success")

        return result

    def open_subtitles(self) -> OpenResult:
        """Open a subtitles input with the first willing provider."""
        token = self.guard.token(CounterKind.OPEN)
        outcome = self._dispatcher.run(
            Capability.OPEN_SUBTITLES,
            self.index[Capability.OPEN_SUBTITLES],
            lambda p: p.open_subtitles(),
            token,
            DispatchPolicy.FIRST_SUCCESS_OR_ABORT,
        )

        result = self._open_result(outcome)
        if outcome.status is DispatchStatus.SUCCESS:
            self.session = replace(self.session, subtitles_provider=outcome.provider)
            result.session = self.session
            logger.info(f"{self._log_prefix}[{outcome.provider.name}] Open Subtitles Success")

        return result

    def open_item(self, session: Optional[OpenSession] = None) -> OpenResult:
        """Open the selected playlist item with the session's winning provider.

        A session from an earlier open attempt is cancelled without calling
        its provider. The result is downgraded to cancelled if an item
        switch or a new open started while the provider was working.

        Args:
            session: Session returned by ``open``. Defaults to the
                handler's current session.

        Returns:
            The provider's result, or a cancelled result.

        Raises:
            NoActiveProviderError: If no open has succeeded in the session.
        """
        session = session if session is not None else self.session
        if session.provider is None:
            raise NoActiveProviderError()

        provider = session.provider
        if self.guard.is_stale(session.open_epoch, CounterKind.OPEN):
            logger.debug(
                f"{self._log_prefix}[{provider.name}] Open Item skipped, "
                f"session {session.open_epoch} superseded"
            )
            return OpenResult.cancelled()

        epoch = self.guard.snapshot_item_epoch()

        if self.isolate_faults:
            try:
                result = provider.open_item()
            except Exception as e:
                logger.error(f"{self._log_prefix}[{provider.name}] Open Item raised", exc_info=True)
                result = OpenResult.failed(f"{type(e).__name__}: {e}")
        else:
            result = provider.open_item()

        if result is None or self.guard.is_stale(epoch, CounterKind.ITEM):
            return OpenResult.cancelled()

        if result.success:
            index = self.playlist.selected.index if self.playlist.selected else None
            logger.info(f"{self._log_prefix}[{provider.name}] Open Item ({index}) Success")

        return result

    @staticmethod
    def _open_result(outcome: DispatchOutcome) -> OpenResult:
        if outcome.status is DispatchStatus.CANCELLED:
            return OpenResult.cancelled()
        if outcome.status is DispatchStatus.EXHAUSTED:
            return OpenResult.failed(NO_PROVIDER)
        return outcome.value

    # =========================================================================
    # Playlist
    # =========================================================================

    def on_playlist_completed(self) -> None:
        """Mark the playlist as complete. Called by the opening provider."""
        playlist = self.playlist
        playlist.completed = True
        if playlist.expecting_items == 0:
            playlist.expecting_items = len(playlist)

        if len(playlist) > 1:
            logger.debug(f"{self._log_prefix}Playlist Completed")
            playlist.update_prev_next_item()

    def scrape_item(self, item: PlaylistItem) -> None:
        """Let every scrape provider enrich ``item`` in priority order."""
        self._dispatcher.run(
            Capability.SCRAPE_ITEM,
            self.index[Capability.SCRAPE_ITEM],
            lambda p: p.scrape_item(item),
            self.guard.token(CounterKind.ITEM),
            DispatchPolicy.BROADCAST,
        )

    def suggest_item(self) -> Optional[PlaylistItem]:
        outcome = self._suggest(
            Capability.SUGGEST_PLAYLIST_ITEM, lambda p: p.suggest_item()
        )
        item = outcome.value
        if item is not None:
            logger.info(f"{self._log_prefix}SuggestItem #{item.index} - {item.title}")
        return item

    # =========================================================================
    # Streams
    # =========================================================================

    def suggest_video(self, streams: Optional[Sequence[VideoStream]]) -> Optional[VideoStream]:
        if not streams:
            return None
        return self._suggest(
            Capability.SUGGEST_VIDEO_STREAM, lambda p: p.suggest_video(streams)
        ).value

    def suggest_audio(self, streams: Optional[Sequence[AudioStream]]) -> Optional[AudioStream]:
        if not streams:
            return None
        return self._suggest(
            Capability.SUGGEST_AUDIO_STREAM, lambda p: p.suggest_audio(streams)
        ).value

    def suggest_external_video(self) -> Optional[ExternalVideoStream]:
        stream = self._suggest(
            Capability.SUGGEST_EXTERNAL_VIDEO, lambda p: p.suggest_external_video()
        ).value
        if stream is not None:
            logger.info(
                f"{self._log_prefix}SuggestVideo (External) "
                f"{getattr(stream, 'width', '?')} x {getattr(stream, 'height', '?')} "
                f"@ {getattr(stream, 'fps', '?')}"
            )
        return stream

    def suggest_external_audio(self) -> Optional[ExternalAudioStream]:
        stream = self._suggest(
            Capability.SUGGEST_EXTERNAL_AUDIO, lambda p: p.suggest_external_audio()
        ).value
        if stream is not None:
            logger.info(
                f"{self._log_prefix}SuggestAudio (External) "
                f"{getattr(stream, 'sample_rate', '?')} Hz, {getattr(stream, 'codec', '?')}"
            )
        return stream

    def suggest_video_with_fallback(
        self, streams: Optional[Sequence[VideoStream]]
    ) -> SuggestionResult:
        """Suggest an embedded video stream, else an external one."""
        return self._suggest_with_fallback(
            streams,
            Capability.SUGGEST_VIDEO_STREAM,
            lambda p: p.suggest_video(streams),
            Capability.SUGGEST_EXTERNAL_VIDEO,
            lambda p: p.suggest_external_video(),
        )

    def suggest_audio_with_fallback(
        self, streams: Optional[Sequence[AudioStream]]
    ) -> SuggestionResult:
        """Suggest an embedded audio stream, else an external one."""
        return self._suggest_with_fallback(
            streams,
            Capability.SUGGEST_AUDIO_STREAM,
            lambda p: p.suggest_audio(streams),
            Capability.SUGGEST_EXTERNAL_AUDIO,
            lambda p: p.suggest_external_audio(),
        )

    def suggest_data(self, streams: Optional[Sequence[DataStream]]) -> Optional[DataStream]:
        """Pick the first data stream. No provider capability exists for data."""
        if self.guard.interrupt or not streams:
            return None
        return streams[0]

    def _suggest(
        self,
        capability: Capability,
        invoke,
        token: Optional[CancellationToken] = None,
    ) -> DispatchOutcome:
        return self._dispatcher.run(
            capability,
            self.index[capability],
            invoke,
            token or self.guard.token(CounterKind.ITEM),
            DispatchPolicy.FIRST_SUCCESS,
        )

    def _suggest_with_fallback(
        self,
        streams,
        capability: Capability,
        invoke,
        external_capability: Capability,
        external_invoke,
    ) -> SuggestionResult:
        token = self.guard.token(CounterKind.ITEM)
        if token.is_cancelled:
            return SuggestionResult(cancelled=True)

        if streams:
            outcome = self._suggest(capability, invoke, token)
            if outcome.cancelled:
                return SuggestionResult(cancelled=True)
            if outcome.value is not None:
                return SuggestionResult(stream=outcome.value)

        if token.is_cancelled:
            return SuggestionResult(cancelled=True)

        outcome = self._suggest(external_capability, external_invoke, token)
        return SuggestionResult(external=outcome.value, cancelled=outcome.cancelled)

    def __repr__(self) -> str:
        return (
            f"ProviderHandler(id={self.unique_id}, providers={len(self.providers)}, "
            f"{self.guard!r})"
        )
