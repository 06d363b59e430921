"""Debug command for playpath CLI.

Loads a handler, traces to the console at VERBOSE level, and walks
through one open followed by a number of item switches.
"""

import logging
import sys
from typing import Optional

from playpath.config import load_yaml_config
from playpath.core.media import PlaylistItem
from playpath.core.provider import ProviderDescriptor
from playpath.core.results import NoActiveProviderError, PlaypathError
from playpath.observability import ConsoleSink, ObservabilityHub, TraceLevel
from playpath.providers import DummyOpenProvider
from playpath.session.handler import ProviderHandler


def cmd_debug(config_path: Optional[str] = None, items: int = 1) -> int:
    """Run an open sequence with console tracing.

    Args:
        config_path: Handler configuration. Uses the built-in dummy
            provider when omitted.
        items: Number of item switches to perform after the open.

    Returns:
        Exit code (0 when the open succeeded, 1 otherwise).
    """
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    hub = ObservabilityHub.get_instance()
    hub.configure(level=TraceLevel.VERBOSE, sinks=[ConsoleSink(sys.stdout)])

    try:
        if config_path:
            config = load_yaml_config(config_path)
            handler = ProviderHandler.from_config(config.handler)
        else:
            handler = ProviderHandler(
                [ProviderDescriptor(name="dummy", factory=DummyOpenProvider)]
            )
    except (FileNotFoundError, PlaypathError) as e:
        print(f"Error: {e}", file=sys.stderr)
        hub.shutdown()
        return 1

    exit_code = 0
    with handler:
        handler.on_initializing()
        handler.on_initialized()
        res = handler.open()
        print(f"open: {'ok' if res.success else res.error}")

        if not res.success:
            exit_code = 1
        else:
            playlist = handler.playlist
            if not playlist.items:
                for i in range(max(items, 1)):
                    playlist.add_item(PlaylistItem(title=f"item {i}"))
            handler.on_playlist_completed()

            for i in range(items):
                playlist.selected = playlist.items[i % len(playlist)]
                handler.on_initializing_switch()
                handler.on_initialized_switch()
                try:
                    item_res = handler.open_item(res.session)
                except NoActiveProviderError as e:
                    print(f"open_item: {e}", file=sys.stderr)
                    exit_code = 1
                    break
                print(f"open_item #{playlist.selected.index}: "
                      f"{'ok' if item_res.success else item_res.error}")

    hub.shutdown()
    return exit_code
