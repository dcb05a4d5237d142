"""RefreshController — the entry point for user actions.

Wires "open file", "open link" and "set interval" to the fetcher,
parser, layer store and poll scheduler. Every action returns an
``ActionResult`` whose message is meant to be shown to the user as-is;
no feed error escapes as an exception.

Fetching and parsing happen on the caller's thread. Only the resulting
store/session mutation is handed to the writer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable
from urllib.parse import urlsplit

from netviz.config import settings
from netviz.errors import FeedError, InvalidSourceError, ValidationError
from netviz.feeds.fetcher import FeedFetcher
from netviz.feeds.interval import PollInterval, validate_interval
from netviz.feeds.scheduler import PollScheduler, TimerFactory, threading_timer
from netviz.feeds.source import FileSource, LiveSource, Source
from netviz.feeds.writer import InlineWriter, SerialWriter
from netviz.layers.layer import FILE, LIVE, Layer
from netviz.layers.parsers.geojson import parse_geojson
from netviz.layers.store import LayerStore

if TYPE_CHECKING:
    from netviz.comms.event_bus import EventBus
    from netviz.layers.display import Display

logger = logging.getLogger("netviz.controller")


@dataclass
class ActionResult:
    """Outcome of a user action.

    Attributes:
        ok: Whether the action took effect.
        message: User-facing text, success or failure.
        kind: "ok", or the failing error's kind ("validation", "fetch",
            "parse", "display", "error").
        layer: The layer now displayed, on load success.
        interval: Effective poll interval in seconds, where relevant.
    """

    ok: bool
    message: str
    kind: str = "ok"
    layer: Layer | None = None
    interval: int | None = None

    def to_dict(self) -> dict:
        out = {"ok": self.ok, "message": self.message, "kind": self.kind}
        if self.layer is not None:
            out["layer"] = {
                "id": self.layer.layer_id,
                "name": self.layer.name,
                "tag": self.layer.tag,
                "features": len(self.layer.features),
            }
        if self.interval is not None:
            out["interval"] = self.interval
        return out


class RefreshController:
    """Top-level orchestrator for file loads, live feeds and the poll period."""

    def __init__(
        self,
        display: Display,
        *,
        fetcher: FeedFetcher | None = None,
        writer: SerialWriter | InlineWriter | None = None,
        parse: Callable[[bytes, str], Layer] = parse_geojson,
        timer_factory: TimerFactory = threading_timer,
        event_bus: EventBus | None = None,
        default_feed_url: str | None = None,
        default_interval: int | None = None,
        feed_suffixes: tuple[str, ...] | None = None,
        on_tick_error: Callable[[LiveSource, FeedError], None] | None = None,
    ) -> None:
        self._fetcher = fetcher or FeedFetcher()
        self._writer = writer or SerialWriter()
        self._writer.start()
        self._parse = parse
        self._event_bus = event_bus
        self._default_feed_url = default_feed_url or settings.default_feed_url
        self._suffixes = tuple(s.lower() for s in (feed_suffixes or settings.feed_suffixes))
        self._interval = PollInterval(default_interval or settings.default_poll_interval)

        self.store = LayerStore(display, event_bus=event_bus)
        self.scheduler = PollScheduler(
            self.store,
            self._fetcher,
            self._writer,
            parse=parse,
            timer_factory=timer_factory,
            event_bus=event_bus,
            on_error=on_tick_error,
        )

    @property
    def interval(self) -> PollInterval:
        return self._interval

    @property
    def default_feed_url(self) -> str:
        return self._default_feed_url

    # -- user actions ----------------------------------------------------

    def open_file(self, path: str) -> ActionResult:
        """Load a local GeoJSON file into the file layer."""
        try:
            source = self._file_source(path)
            layer = self._load(source, FILE)
        except FeedError as e:
            return self._failure(e, "Error processing the JSON file")

        try:
            self._writer.call(self.store.replace, FILE, layer)
        except Exception as e:
            return self._display_failure(e)

        logger.info("Loaded %d features from %s", len(layer.features), path)
        return ActionResult(
            ok=True,
            message=f"Loaded {len(layer.features)} features from {path}",
            layer=layer,
        )

    def open_link(self, url_or_empty: str | None) -> ActionResult:
        """Load a live feed and start polling it.

        Empty input means the default feed. On failure any existing
        session keeps running untouched.
        """
        url = (url_or_empty or "").strip() or self._default_feed_url
        try:
            source = self._live_source(url)
            layer = self._load(source, LIVE)
        except FeedError as e:
            return self._failure(e, "Error loading GeoJSON data")

        try:
            interval = self._writer.call(self._install_live, source, layer)
        except Exception as e:
            return self._display_failure(e)

        return ActionResult(
            ok=True,
            message=(
                f"Loaded {len(layer.features)} features from {url}; "
                f"refreshing every {interval}"
            ),
            layer=layer,
            interval=interval.seconds,
        )

    def set_interval(self, text: str | None, unit: str) -> ActionResult:
        """Change the poll period; re-arms the live session if there is one."""
        try:
            interval = validate_interval(text, unit)
        except ValidationError as e:
            return self._failure(e)

        self._writer.call(self._apply_interval, interval)
        return ActionResult(
            ok=True,
            message=f"Query Interval: {interval.seconds} seconds",
            interval=interval.seconds,
        )

    def stop(self) -> ActionResult:
        """Stop live polling. The last live layer stays on the display."""
        self._writer.call(self.scheduler.stop)
        return ActionResult(ok=True, message="Live polling stopped", interval=self._interval.seconds)

    def status(self) -> dict:
        return self._writer.call(self._status)

    def current_layer(self, tag: str) -> Layer | None:
        return self._writer.call(self.store.get, tag)

    def shutdown(self) -> None:
        """Stop polling, clear the display and release the writer and fetcher."""
        if self._writer.running:
            self._writer.call(self._teardown)
        self._writer.stop()
        self._fetcher.close()
        logger.info("Refresh controller shut down")

    # -- helpers ---------------------------------------------------------

    def _file_source(self, path: str | None) -> FileSource:
        path = (path or "").strip()
        if not path:
            raise InvalidSourceError("No file selected.")
        if not path.lower().endswith(self._suffixes):
            raise InvalidSourceError("The selected file is not a JSON file.")
        return FileSource(path)

    def _live_source(self, url: str) -> LiveSource:
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidSourceError(f"Invalid JSON Feed URL '{url}'. The URL must start with http:// or https://.")
        if not parts.path.lower().endswith(self._suffixes):
            raise InvalidSourceError(
                f"Invalid JSON Feed URL. The URL must end with {' or '.join(repr(s) for s in self._suffixes)}."
            )
        return LiveSource(url)

    def _load(self, source: Source, tag: str) -> Layer:
        raw = self._fetcher.fetch(source)
        layer = self._parse(raw, tag)
        layer.metadata.setdefault("source", source.describe())
        return layer

    def _install_live(self, source: LiveSource, layer: Layer) -> PollInterval:
        self.store.replace(LIVE, layer)
        self.scheduler.arm(source, self._interval)
        return self._interval

    def _apply_interval(self, interval: PollInterval) -> None:
        self._interval = interval
        self.scheduler.reconfigure(interval)
        logger.info("Query interval set to %s", interval)
        if self._event_bus is not None:
            self._event_bus.publish("interval_changed", {"interval": interval.seconds})

    def _status(self) -> dict:
        session = self.scheduler.session
        return {
            "state": self.scheduler.state.value,
            "interval": self._interval.seconds,
            "default_feed_url": self._default_feed_url,
            "session": session.to_dict() if session is not None else None,
            "layers": [
                {
                    "id": layer.layer_id,
                    "name": layer.name,
                    "tag": layer.tag,
                    "features": len(layer.features),
                    "source": layer.metadata.get("source", ""),
                }
                for layer in self.store.layers()
            ],
        }

    def _teardown(self) -> None:
        self.scheduler.stop()
        self.store.clear_all()

    def _failure(self, error: FeedError, context: str = "") -> ActionResult:
        # validation messages already read as instructions to the user
        if context and not isinstance(error, ValidationError):
            message = f"{context}: {error}"
        else:
            message = str(error)
        logger.warning("%s", message)
        if self._event_bus is not None:
            self._event_bus.publish("action_failed", {"kind": error.kind, "message": message})
        return ActionResult(
            ok=False, message=message, kind=error.kind, interval=self._interval.seconds
        )

    def _display_failure(self, error: Exception) -> ActionResult:
        logger.error("Display rejected layer: %s", error)
        return ActionResult(ok=False, message=f"Could not display layer: {error}", kind="display")
