"""Tests for ProviderHandler."""

import logging
import threading
from typing import List, Optional

import pytest

from playpath.core import (
    Capability,
    OpenProvider,
    OpenResult,
    OpenSubtitlesProvider,
    Playlist,
    PlaylistItem,
    Provider,
    ProviderDescriptor,
    ScrapeItemProvider,
    SuggestPlaylistItemProvider,
    SuggestVideoStreamProvider,
    SuggestAudioStreamProvider,
    SuggestExternalVideoProvider,
    SuggestExternalAudioProvider,
    VideoStream,
    AudioStream,
    DataStream,
    ExternalVideoStream,
    ExternalAudioStream,
    CANCELLED,
    NO_PROVIDER,
    NoActiveProviderError,
    DuplicateProviderError,
)
from playpath.session import ProviderHandler, OpenSession


# =============================================================================
# Test Fixtures
# =============================================================================


class MockOpener(Provider, OpenProvider):
    """Open provider that records every call."""

    def __init__(
        self,
        result: Optional[OpenResult] = None,
        can_open: bool = True,
        item_result: Optional[OpenResult] = None,
        on_open=None,
        on_open_item=None,
        fail: bool = False,
    ):
        self.result = result
        self.item_result = item_result if item_result is not None else OpenResult()
        self._can_open = can_open
        self._on_open = on_open
        self._on_open_item = on_open_item
        self._fail = fail
        self.probe_calls = 0
        self.open_calls = 0
        self.item_calls = 0
        self.events: List[str] = []
        self.disposed = 0

    def can_open(self) -> bool:
        self.probe_calls += 1
        return self._can_open

    def open(self) -> Optional[OpenResult]:
        self.open_calls += 1
        if self._on_open:
            self._on_open()
        if self._fail:
            raise RuntimeError("open exploded")
        return self.result

    def open_item(self) -> Optional[OpenResult]:
        self.item_calls += 1
        if self._on_open_item:
            self._on_open_item()
        return self.item_result

    def on_initializing(self) -> None:
        self.events.append("initializing")

    def on_initialized(self) -> None:
        self.events.append("initialized")

    def on_initializing_switch(self) -> None:
        self.events.append("initializing_switch")

    def on_initialized_switch(self) -> None:
        self.events.append("initialized_switch")

    def dispose(self) -> None:
        self.disposed += 1


class MockVideoSuggester(Provider, SuggestVideoStreamProvider, SuggestExternalVideoProvider):
    """Video suggester that appends its name to a shared call log."""

    def __init__(self, calls: List[str], pick: Optional[int] = None, external=None, on_call=None):
        self._calls = calls
        self._pick = pick
        self._external = external
        self._on_call = on_call

    def suggest_video(self, candidates):
        self._calls.append(self.name)
        if self._on_call:
            self._on_call()
        return candidates[self._pick] if self._pick is not None else None

    def suggest_external_video(self):
        self._calls.append(f"{self.name}:external")
        return self._external


class MockAudioSuggester(Provider, SuggestAudioStreamProvider, SuggestExternalAudioProvider):

    def __init__(self, pick: Optional[int] = None, external=None):
        self._pick = pick
        self._external = external
        self.external_calls = 0

    def suggest_audio(self, candidates):
        return candidates[self._pick] if self._pick is not None else None

    def suggest_external_audio(self):
        self.external_calls += 1
        return self._external


class MockScraper(Provider, ScrapeItemProvider):

    def __init__(self, calls: List[str], on_call=None):
        self._calls = calls
        self._on_call = on_call

    def scrape_item(self, item: PlaylistItem) -> None:
        self._calls.append(self.name)
        item.tags[self.name] = True
        if self._on_call:
            self._on_call()


class MockItemSuggester(Provider, SuggestPlaylistItemProvider):

    def __init__(self, item: Optional[PlaylistItem] = None):
        self._item = item
        self.calls = 0

    def suggest_item(self) -> Optional[PlaylistItem]:
        self.calls += 1
        return self._item


class MockDualOpener(MockOpener, OpenSubtitlesProvider):
    """Implements both Open and OpenSubtitles."""

    def open_subtitles(self) -> Optional[OpenResult]:
        return OpenResult(payload="subs")


class MockSubtitlesOpener(Provider, OpenSubtitlesProvider):

    def __init__(self, result: Optional[OpenResult] = None):
        self.result = result
        self.calls = 0

    def open_subtitles(self) -> Optional[OpenResult]:
        self.calls += 1
        return self.result


def desc(name: str, provider: Provider, priority: Optional[int] = None) -> ProviderDescriptor:
    return ProviderDescriptor(name=name, factory=lambda: provider, priority=priority)


def start_open(handler: ProviderHandler) -> OpenResult:
    handler.on_initializing()
    handler.on_initialized()
    return handler.open()


# =============================================================================
# Open Tests
# =============================================================================


class TestOpen:
    """Tests for the open dispatch."""

    def test_empty_registry_reports_no_provider(self):
        """Scenario D: zero providers yields 'no provider found'."""
        handler = ProviderHandler([])

        res = start_open(handler)

        assert res.error == NO_PROVIDER
        assert not res.is_cancelled

    def test_first_success_wins(self):
        """Test the first successful provider becomes the winner."""
        p1 = MockOpener(result=OpenResult(payload="p1"))
        p2 = MockOpener(result=OpenResult(payload="p2"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])

        res = start_open(handler)

        assert res.success
        assert res.payload == "p1"
        assert res.session.provider is p1
        assert handler.session.provider is p1
        assert p2.probe_calls == 0

    def test_error_aborts_chain(self):
        """Scenario B: an error result stops the chain; later providers never run."""
        p1 = MockOpener(result=OpenResult.failed("bad url"))
        p2 = MockOpener(result=OpenResult(payload="ok"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])

        res = start_open(handler)

        assert res.error == "bad url"
        assert p1.open_calls == 1
        assert p2.probe_calls == 0
        assert p2.open_calls == 0
        assert handler.session.provider is None

    def test_declining_probe_skips_open(self):
        """Test a provider whose probe declines is never opened."""
        p1 = MockOpener(result=OpenResult(payload="p1"), can_open=False)
        p2 = MockOpener(result=OpenResult(payload="p2"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])

        res = start_open(handler)

        assert res.payload == "p2"
        assert p1.probe_calls == 1
        assert p1.open_calls == 0

    def test_none_result_continues(self):
        """Test a provider returning None is treated as not applicable."""
        p1 = MockOpener(result=None)
        p2 = MockOpener(result=OpenResult(payload="p2"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])

        res = start_open(handler)

        assert res.payload == "p2"
        assert p1.open_calls == 1

    def test_all_decline_reports_no_provider(self):
        """Test exhausting the chain reports 'no provider found'."""
        handler = ProviderHandler([
            desc("p1", MockOpener(result=None)),
            desc("p2", MockOpener(can_open=False)),
        ])

        assert start_open(handler).error == NO_PROVIDER

    def test_epoch_bump_cancels(self):
        """Scenario C: a newer open attempt before the next poll point cancels."""
        p1 = MockOpener(result=None)
        p2 = MockOpener(result=OpenResult(payload="p2"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])
        p1._on_open = handler.guard.bump_open

        res = start_open(handler)

        assert res.is_cancelled
        assert res.error == CANCELLED
        assert p2.open_calls == 0

    def test_interrupt_cancels_before_first_provider(self):
        """Test the interrupt flag is checked before any provider call."""
        p1 = MockOpener(result=OpenResult(payload="p1"))
        handler = ProviderHandler([desc("p1", p1)])
        handler.on_initializing()
        handler.on_initialized()
        handler.interrupt = True

        res = handler.open()

        assert res.is_cancelled
        assert p1.probe_calls == 0

    def test_cancel_from_other_thread(self):
        """Test a cancel request from another thread stops the chain."""
        started = threading.Event()
        proceed = threading.Event()

        def block():
            started.set()
            proceed.wait(timeout=5)

        p1 = MockOpener(result=None, on_open=block)
        p2 = MockOpener(result=OpenResult(payload="p2"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])
        handler.on_initializing()
        handler.on_initialized()

        results = []
        worker = threading.Thread(target=lambda: results.append(handler.open()))
        worker.start()

        assert started.wait(timeout=5)
        handler.cancel()
        proceed.set()
        worker.join(timeout=5)

        assert results[0].is_cancelled
        assert p1.open_calls == 1
        assert p2.open_calls == 0

    def test_provider_fault_propagates(self):
        """Test provider exceptions reach the caller by default."""
        p1 = MockOpener(fail=True)
        p2 = MockOpener(result=OpenResult(payload="p2"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])

        with pytest.raises(RuntimeError, match="open exploded"):
            start_open(handler)
        assert p2.open_calls == 0

    def test_isolated_fault_is_a_decline(self, caplog):
        """Test isolate_faults turns an exception into a decline."""
        p1 = MockOpener(fail=True)
        p2 = MockOpener(result=OpenResult(payload="p2"))
        handler = ProviderHandler(
            [desc("p1", p1, 1), desc("p2", p2, 2)], isolate_faults=True
        )

        with caplog.at_level(logging.ERROR):
            res = start_open(handler)

        assert res.payload == "p2"
        assert "raised during dispatch" in caplog.text

    def test_new_open_replaces_winner(self):
        """Test a later successful open replaces the current winner."""
        p1 = MockOpener(result=OpenResult(payload="p1"))
        p2 = MockOpener(result=OpenResult(payload="p2"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])

        start_open(handler)
        p1._can_open = False
        res = start_open(handler)

        assert res.session.provider is p2
        assert handler.session.open_epoch == 2


# =============================================================================
# Open Item Tests
# =============================================================================


class TestOpenItem:
    """Tests for open_item."""

    def test_targets_winner(self):
        """Test open_item delegates only to the winning provider."""
        p1 = MockOpener(result=OpenResult(payload="p1"), can_open=False)
        p2 = MockOpener(result=OpenResult(payload="p2"), item_result=OpenResult(payload="item"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])
        res = start_open(handler)

        item_res = handler.open_item(res.session)

        assert item_res.payload == "item"
        assert p2.item_calls == 1
        assert p1.item_calls == 0

    def test_defaults_to_current_session(self):
        """Test open_item without a session uses the handler's session."""
        p1 = MockOpener(result=OpenResult(payload="p1"))
        handler = ProviderHandler([desc("p1", p1)])
        start_open(handler)

        assert handler.open_item().success
        assert p1.item_calls == 1

    def test_without_winner_raises(self):
        """Test open_item before any successful open is a precondition error."""
        handler = ProviderHandler([desc("p1", MockOpener(result=None))])
        start_open(handler)

        with pytest.raises(NoActiveProviderError):
            handler.open_item()

    def test_without_winner_on_empty_session(self):
        """Test an explicit empty session is rejected too."""
        handler = ProviderHandler([])

        with pytest.raises(NoActiveProviderError):
            handler.open_item(OpenSession())

    def test_failed_open_clears_previous_winner(self):
        """Test a new open attempt drops the earlier winner."""
        p1 = MockOpener(result=OpenResult(payload="p1"))
        handler = ProviderHandler([desc("p1", p1)])
        start_open(handler)

        p1.result = OpenResult.failed("gone")
        start_open(handler)

        with pytest.raises(NoActiveProviderError):
            handler.open_item()

    def test_superseded_session_is_cancelled(self):
        """Test a session from an earlier open never reaches its provider."""
        p1 = MockOpener(result=OpenResult(payload="p1"), item_result=OpenResult(payload="i1"))
        p2 = MockOpener(result=OpenResult(payload="p2"), item_result=OpenResult(payload="i2"))
        handler = ProviderHandler([desc("p1", p1, 1), desc("p2", p2, 2)])
        first = start_open(handler)

        p1._can_open = False
        second = start_open(handler)

        assert second.session.provider is p2
        assert handler.open_item(first.session).is_cancelled
        assert p1.item_calls == 0
        assert handler.open_item(second.session).payload == "i2"
        assert p2.item_calls == 1

    def test_session_stale_after_new_attempt_begins(self):
        """Test a new open attempt invalidates the session before its open runs."""
        p1 = MockOpener(result=OpenResult(payload="p1"))
        handler = ProviderHandler([desc("p1", p1)])
        res = start_open(handler)

        handler.on_initializing()

        assert handler.open_item(res.session).is_cancelled
        assert p1.item_calls == 0

    def test_session_survives_item_switch(self):
        """Test item switches keep the session valid."""
        p1 = MockOpener(result=OpenResult(payload="p1"), item_result=OpenResult(payload="i"))
        handler = ProviderHandler([desc("p1", p1)])
        res = start_open(handler)

        handler.on_initializing_switch()
        handler.on_initialized_switch()

        assert handler.open_item(res.session).payload == "i"

    def test_item_switch_during_call_cancels(self):
        """Test an item epoch advance during the call downgrades to cancelled."""
        p1 = MockOpener(result=OpenResult(payload="p1"))
        handler = ProviderHandler([desc("p1", p1)])
        p1._on_open_item = handler.on_initializing_switch
        start_open(handler)

        res = handler.open_item()

        assert res.is_cancelled
        assert p1.item_calls == 1

    def test_none_result_is_cancelled(self):
        """Test a provider returning None from open_item yields cancelled."""
        p1 = MockOpener(result=OpenResult(payload="p1"))
        handler = ProviderHandler([desc("p1", p1)])
        start_open(handler)
        p1.item_result = None

        assert handler.open_item().is_cancelled

    def test_provider_error_passes_through(self):
        """Test an item error from the provider is returned unchanged."""
        p1 = MockOpener(
            result=OpenResult(payload="p1"),
            item_result=OpenResult.failed("item gone"),
        )
        handler = ProviderHandler([desc("p1", p1)])
        start_open(handler)

        assert handler.open_item().error == "item gone"


# =============================================================================
# Open Subtitles Tests
# =============================================================================


class TestOpenSubtitles:
    """Tests for open_subtitles."""

    def test_subtitles_winner_recorded(self):
        """Test a successful subtitles open is kept in the session."""
        subs = MockSubtitlesOpener(result=OpenResult(payload="srt"))
        handler = ProviderHandler([desc("subs", subs)])

        res = handler.open_subtitles()

        assert res.payload == "srt"
        assert handler.session.subtitles_provider is subs

    def test_dual_provider_only_opens_media(self):
        """Test a provider implementing Open and OpenSubtitles is only an opener."""
        dual = MockDualOpener(result=OpenResult(payload="media"))
        handler = ProviderHandler([desc("dual", dual)])

        assert handler.index[Capability.OPEN] == (dual,)
        assert handler.index[Capability.OPEN_SUBTITLES] == ()
        assert handler.open_subtitles().error == NO_PROVIDER

    def test_initialized_clears_subtitles_provider(self):
        """Test the initialized event drops the subtitles winner."""
        subs = MockSubtitlesOpener(result=OpenResult(payload="srt"))
        handler = ProviderHandler([desc("subs", subs)])
        handler.open_subtitles()

        handler.on_initialized()

        assert handler.session.subtitles_provider is None


# =============================================================================
# Lifecycle Tests
# =============================================================================


class TestLifecycle:
    """Tests for lifecycle broadcasts and teardown."""

    def test_initializing_bumps_both_epochs(self):
        """Test on_initializing advances open and item epochs."""
        handler = ProviderHandler([])

        handler.on_initializing()

        assert handler.guard.snapshot_open_epoch() == 1
        assert handler.guard.snapshot_item_epoch() == 1

    def test_switch_bumps_item_epoch_only(self):
        """Test on_initializing_switch advances only the item epoch."""
        handler = ProviderHandler([])

        handler.on_initializing_switch()

        assert handler.guard.snapshot_open_epoch() == 0
        assert handler.guard.snapshot_item_epoch() == 1

    def test_events_reach_every_provider_in_order(self):
        """Test every lifecycle event is broadcast to every provider."""
        log: List[str] = []

        class Tracker(Provider):
            def on_initializing(self):
                log.append(self.name)

        handler = ProviderHandler([
            desc("a", Tracker(), 30),
            desc("b", Tracker(), 10),
            desc("c", Tracker(), 20),
        ])

        handler.on_initializing()

        assert log == ["a", "b", "c"]

    def test_all_four_events(self):
        """Test the four lifecycle hooks are called in sequence."""
        p1 = MockOpener()
        handler = ProviderHandler([desc("p1", p1)])

        handler.on_initializing()
        handler.on_initialized()
        handler.on_initializing_switch()
        handler.on_initialized_switch()

        assert p1.events == [
            "initializing",
            "initialized",
            "initializing_switch",
            "initialized_switch",
        ]

    def test_initialized_resets_playlist(self):
        """Test on_initialized resets the playlist collaborator."""
        playlist = Playlist()
        playlist.add_item(PlaylistItem(title="a"))
        playlist.completed = True
        handler = ProviderHandler([], playlist=playlist)

        handler.on_initialized()

        assert len(playlist) == 0
        assert not playlist.completed

    def test_teardown_disposes_all_despite_failures(self, caplog):
        """Test teardown attempts exactly one dispose per provider."""
        disposed: List[str] = []

        class Disposable(Provider):
            def __init__(self, fail=False):
                self._fail = fail

            def dispose(self):
                disposed.append(self.name)
                if self._fail:
                    raise RuntimeError("dispose failed")

        handler = ProviderHandler([
            desc("a", Disposable()),
            desc("b", Disposable(fail=True)),
            desc("c", Disposable()),
        ])

        with caplog.at_level(logging.ERROR):
            handler.teardown()

        assert disposed == ["a", "b", "c"]
        assert "[b] Failed to dispose" in caplog.text

    def test_teardown_is_idempotent(self):
        """Test a second teardown does not dispose again."""
        p1 = MockOpener()
        handler = ProviderHandler([desc("p1", p1)])

        handler.teardown()
        handler.teardown()

        assert p1.disposed == 1

    def test_context_manager_tears_down(self):
        """Test leaving the with-block tears down the handler."""
        p1 = MockOpener()

        with ProviderHandler([desc("p1", p1)]) as handler:
            assert handler.providers == [p1]

        assert p1.disposed == 1


# =============================================================================
# Loading Tests
# =============================================================================


class TestLoading:
    """Tests for provider loading through the handler."""

    def test_failed_factory_is_skipped(self, caplog):
        """Test a factory failure is logged and the provider skipped."""
        def broken():
            raise ValueError("no codec")

        good = MockOpener(result=OpenResult(payload="ok"))

        with caplog.at_level(logging.ERROR):
            handler = ProviderHandler([
                ProviderDescriptor(name="broken", factory=broken),
                desc("good", good),
            ])

        assert handler.providers == [good]
        assert "broken" in caplog.text
        assert start_open(handler).payload == "ok"

    def test_provider_attached_to_handler(self):
        """Test loaded providers see their handler and descriptor metadata."""
        p1 = MockOpener()
        handler = ProviderHandler([
            ProviderDescriptor(name="p1", factory=lambda: p1, version="2.1"),
        ])

        assert p1.handler is handler
        assert p1.name == "p1"
        assert p1.version == "2.1"

    def test_duplicate_names_rejected(self):
        """Test duplicate provider names fail loudly by default."""
        with pytest.raises(DuplicateProviderError):
            ProviderHandler([desc("same", MockOpener()), desc("same", MockOpener())])

    def test_duplicate_names_dispose_loaded_providers(self):
        """Test providers loaded before a rejected duplicate are disposed once."""
        first = MockOpener()
        second = MockOpener()

        with pytest.raises(DuplicateProviderError):
            ProviderHandler([desc("dup", first), desc("dup", second)])

        assert first.disposed == 1
        assert second.disposed == 1

    def test_duplicate_names_replace(self):
        """Test the replace policy keeps the later registration."""
        first = MockOpener()
        second = MockOpener()

        handler = ProviderHandler(
            [desc("same", first), desc("same", second)],
            duplicate_names="replace",
        )

        assert handler.index[Capability.OPEN] == (second,)

    def test_unique_ids_are_distinct(self):
        """Test auto-assigned handler ids differ."""
        assert ProviderHandler([]).unique_id != ProviderHandler([]).unique_id


# =============================================================================
# Suggestion Tests
# =============================================================================


class TestSuggestions:
    """Tests for suggestion dispatches."""

    def setup_method(self):
        self.streams = [VideoStream(index=0, width=640), VideoStream(index=1, width=1920)]

    def test_priority_order(self):
        """Scenario A: priorities [10, 5, 5] dispatch P2, P3, P1."""
        calls: List[str] = []
        handler = ProviderHandler([
            desc("P1", MockVideoSuggester(calls), 10),
            desc("P2", MockVideoSuggester(calls), 5),
            desc("P3", MockVideoSuggester(calls), 5),
        ])

        assert handler.suggest_video(self.streams) is None
        assert calls == ["P2", "P3", "P1"]

    def test_first_non_null_wins(self):
        """Test the first provider with a suggestion stops the chain."""
        calls: List[str] = []
        handler = ProviderHandler([
            desc("a", MockVideoSuggester(calls), 1),
            desc("b", MockVideoSuggester(calls, pick=1), 2),
            desc("c", MockVideoSuggester(calls, pick=0), 3),
        ])

        assert handler.suggest_video(self.streams) is self.streams[1]
        assert calls == ["a", "b"]

    def test_empty_candidates_skip_dispatch(self):
        """Test no provider is called without candidates."""
        calls: List[str] = []
        handler = ProviderHandler([desc("a", MockVideoSuggester(calls, pick=0))])

        assert handler.suggest_video([]) is None
        assert handler.suggest_video(None) is None
        assert calls == []

    def test_candidates_not_mutated(self):
        """Test the candidate sequence is passed through unchanged."""
        calls: List[str] = []
        handler = ProviderHandler([desc("a", MockVideoSuggester(calls, pick=0))])
        before = list(self.streams)

        handler.suggest_video(self.streams)

        assert self.streams == before

    def test_interrupt_stops_suggestions(self):
        """Test the interrupt flag stops the chain at the next poll point."""
        calls: List[str] = []
        handler = ProviderHandler([
            desc("a", MockVideoSuggester(calls), 1),
            desc("b", MockVideoSuggester(calls, pick=0), 2),
        ])
        handler.providers[0]._on_call = handler.cancel

        assert handler.suggest_video(self.streams) is None
        assert calls == ["a"]

    def test_suggest_item(self):
        """Test suggest_item returns the first provider's item."""
        item = PlaylistItem(index=3, title="intro")
        empty = MockItemSuggester()
        handler = ProviderHandler([desc("empty", empty, 1), desc("pick", MockItemSuggester(item), 2)])

        assert handler.suggest_item() is item
        assert empty.calls == 1

    def test_external_video(self):
        """Test external video suggestion without candidates."""
        ext = ExternalVideoStream(url="http://x/v.mp4", width=1280, height=720, fps=30.0)
        handler = ProviderHandler([desc("a", MockVideoSuggester([], external=ext))])

        assert handler.suggest_external_video() is ext

    def test_external_audio(self):
        """Test external audio suggestion without candidates."""
        ext = ExternalAudioStream(url="http://x/a.aac", sample_rate=48000, codec="aac")
        handler = ProviderHandler([desc("a", MockAudioSuggester(external=ext))])

        assert handler.suggest_external_audio() is ext

    def test_external_log_tolerates_other_types(self, caplog):
        """Test logging an external suggestion that lacks stream fields."""
        handler = ProviderHandler([
            desc("v", MockVideoSuggester([], external="http://x/v.mp4")),
            desc("a", MockAudioSuggester(external="http://x/a.aac")),
        ])

        with caplog.at_level(logging.INFO):
            assert handler.suggest_external_video() == "http://x/v.mp4"
            assert handler.suggest_external_audio() == "http://x/a.aac"

        assert "? x ? @ ?" in caplog.text
        assert "? Hz, ?" in caplog.text

    def test_suggest_audio(self):
        """Test audio suggestion over candidates."""
        streams = [AudioStream(index=0), AudioStream(index=1)]
        handler = ProviderHandler([desc("a", MockAudioSuggester(pick=1))])

        assert handler.suggest_audio(streams) is streams[1]

    def test_fallback_prefers_intrinsic(self):
        """Test the external dispatch is skipped when a stream was found."""
        calls: List[str] = []
        handler = ProviderHandler([
            desc("a", MockVideoSuggester(calls, pick=0, external=ExternalVideoStream())),
        ])

        res = handler.suggest_video_with_fallback(self.streams)

        assert res.stream is self.streams[0]
        assert res.external is None
        assert calls == ["a"]

    def test_fallback_to_external(self):
        """Test the external dispatch runs when no stream was suggested."""
        ext = ExternalVideoStream(url="http://x/v.mp4")
        calls: List[str] = []
        handler = ProviderHandler([desc("a", MockVideoSuggester(calls, external=ext))])

        res = handler.suggest_video_with_fallback(self.streams)

        assert res.stream is None
        assert res.external is ext
        assert not res.cancelled
        assert calls == ["a", "a:external"]

    def test_fallback_without_candidates_goes_external(self):
        """Test empty candidates go straight to the external dispatch."""
        ext = ExternalAudioStream(url="http://x/a.aac")
        suggester = MockAudioSuggester(external=ext)
        handler = ProviderHandler([desc("a", suggester)])

        res = handler.suggest_audio_with_fallback([])

        assert res.external is ext
        assert suggester.external_calls == 1

    def test_fallback_not_tried_after_cancel(self):
        """Test a cancellation during the intrinsic dispatch skips the external one."""
        calls: List[str] = []
        handler = ProviderHandler([
            desc("a", MockVideoSuggester(calls), 1),
            desc("b", MockVideoSuggester(calls, external=ExternalVideoStream()), 2),
        ])
        handler.providers[0]._on_call = handler.on_initializing_switch

        res = handler.suggest_video_with_fallback(self.streams)

        assert res.cancelled
        assert res.stream is None and res.external is None
        assert calls == ["a"]

    def test_fallback_interrupted_upfront(self):
        """Test an interrupted handler returns a cancelled suggestion."""
        handler = ProviderHandler([desc("a", MockAudioSuggester(pick=0))])
        handler.interrupt = True

        assert handler.suggest_audio_with_fallback([AudioStream()]).cancelled

    def test_suggest_data(self):
        """Test the first data stream is suggested unless interrupted."""
        streams = [DataStream(index=0), DataStream(index=1)]
        handler = ProviderHandler([])

        assert handler.suggest_data(streams) is streams[0]
        assert handler.suggest_data([]) is None

        handler.interrupt = True
        assert handler.suggest_data(streams) is None


# =============================================================================
# Playlist Tests
# =============================================================================


class TestPlaylistOperations:
    """Tests for scrape and playlist completion."""

    def test_scrape_broadcasts_to_all(self):
        """Test every scrape provider runs in priority order."""
        calls: List[str] = []
        handler = ProviderHandler([
            desc("late", MockScraper(calls), 20),
            desc("early", MockScraper(calls), 10),
        ])
        item = PlaylistItem(title="x")

        assert handler.scrape_item(item) is None
        assert calls == ["early", "late"]
        assert item.tags == {"early": True, "late": True}

    def test_scrape_stops_on_interrupt(self):
        """Test an interrupt halts the broadcast early."""
        calls: List[str] = []
        handler = ProviderHandler([
            desc("a", MockScraper(calls), 1),
            desc("b", MockScraper(calls), 2),
        ])
        handler.providers[0]._on_call = handler.cancel

        handler.scrape_item(PlaylistItem())

        assert calls == ["a"]

    def test_playlist_completed(self):
        """Test completion sets expected items and neighbours."""
        handler = ProviderHandler([])
        playlist = handler.playlist
        for title in ("a", "b", "c"):
            playlist.add_item(PlaylistItem(title=title))
        playlist.selected = playlist.items[1]

        handler.on_playlist_completed()

        assert playlist.completed
        assert playlist.expecting_items == 3
        assert playlist.prev_item is playlist.items[0]
        assert playlist.next_item is playlist.items[2]

    def test_playlist_completed_keeps_expected_items(self):
        """Test a provider-announced item count is not overwritten."""
        handler = ProviderHandler([])
        handler.playlist.add_item(PlaylistItem())
        handler.playlist.expecting_items = 5

        handler.on_playlist_completed()

        assert handler.playlist.expecting_items == 5
