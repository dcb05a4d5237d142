"""PollScheduler — one recurring fetch → parse → replace loop for a live feed.

States:
    IDLE     no session
    ARMED    a session exists and its next tick is scheduled
    TICKING  a tick's fetch/parse is in flight

Arming always cancels the current session before creating the next one,
so two sessions never tick at once. Each tick's result is applied on the
writer, and only if the session that started it is still the current
one; a timer that fired just before cancellation therefore cannot touch
the store. A failed tick leaves the live layer alone, is reported, and
the session carries on with its next tick.

The next tick is scheduled once the current one has been applied, so a
slow feed stretches the cycle instead of stacking ticks.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable, Protocol

from netviz.errors import FeedError
from netviz.layers.layer import LIVE, Layer
from netviz.layers.parsers.geojson import parse_geojson

if TYPE_CHECKING:
    from netviz.comms.event_bus import EventBus
    from netviz.feeds.fetcher import FeedFetcher
    from netviz.feeds.interval import PollInterval
    from netviz.feeds.source import LiveSource
    from netviz.feeds.writer import InlineWriter, SerialWriter
    from netviz.layers.store import LayerStore

logger = logging.getLogger("netviz.scheduler")


class SchedulerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    TICKING = "ticking"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


# (delay_seconds, callback) -> started, cancellable timer
TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def threading_timer(delay: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.name = "netviz-poll-timer"
    timer.start()
    return timer


@dataclass
class PollSession:
    """The source, period and pending timer currently driving polling."""

    source: LiveSource
    interval: PollInterval
    generation: int
    timer: TimerHandle | None = None
    ticks: int = 0
    failures: int = 0
    last_error: str = ""
    last_success: str = ""
    armed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "url": self.source.url,
            "interval": self.interval.seconds,
            "generation": self.generation,
            "ticks": self.ticks,
            "failures": self.failures,
            "last_error": self.last_error,
            "last_success": self.last_success,
            "armed_at": self.armed_at,
        }


class PollScheduler:
    """Owns the single live-feed poll session.

    ``arm``, ``reconfigure`` and ``stop`` must be called on the writer.
    """

    def __init__(
        self,
        store: LayerStore,
        fetcher: FeedFetcher,
        writer: SerialWriter | InlineWriter,
        parse: Callable[[bytes, str], Layer] = parse_geojson,
        timer_factory: TimerFactory = threading_timer,
        event_bus: EventBus | None = None,
        on_error: Callable[[LiveSource, FeedError], None] | None = None,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._writer = writer
        self._parse = parse
        self._timer_factory = timer_factory
        self._event_bus = event_bus
        self._on_error = on_error
        self._session: PollSession | None = None
        self._state = SchedulerState.IDLE
        self._generation = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def session(self) -> PollSession | None:
        return self._session

    # -- writer-side operations ------------------------------------------

    def arm(self, source: LiveSource, interval: PollInterval) -> PollSession:
        """Replace any current session with a new one for ``source``."""
        self._cancel()
        self._generation += 1
        session = PollSession(source=source, interval=interval, generation=self._generation)
        self._session = session
        self._state = SchedulerState.ARMED
        self._schedule(session)
        logger.info("Polling %s every %s (session %d)", source.url, interval, session.generation)
        self._publish("session_armed", session.to_dict())
        return session

    def reconfigure(self, interval: PollInterval) -> PollSession | None:
        """Re-arm the current source with a new period.

        No fetch happens until the new period elapses. Returns None if
        there is no session to reconfigure.
        """
        if self._session is None:
            return None
        return self.arm(self._session.source, interval)

    def stop(self) -> None:
        if self._session is None:
            return
        session = self._session
        self._cancel()
        logger.info("Stopped polling %s", session.source.url)
        self._publish("session_stopped", {"url": session.source.url, "generation": session.generation})

    def _cancel(self) -> None:
        session = self._session
        self._session = None
        self._state = SchedulerState.IDLE
        if session is not None and session.timer is not None:
            session.timer.cancel()
            session.timer = None

    def _schedule(self, session: PollSession) -> None:
        session.timer = self._timer_factory(
            float(session.interval.seconds), lambda: self._tick(session)
        )

    def _is_current(self, session: PollSession) -> bool:
        return session is self._session

    def _begin_tick(self, session: PollSession) -> bool:
        if not self._is_current(session):
            return False
        session.timer = None
        self._state = SchedulerState.TICKING
        return True

    def _complete_tick(self, session: PollSession, layer: Layer | None, error: FeedError | None) -> None:
        if not self._is_current(session):
            logger.debug("Dropping result of superseded session %d", session.generation)
            return
        self._state = SchedulerState.ARMED
        session.ticks += 1
        if error is None:
            try:
                self._store.replace(LIVE, layer)
            except Exception as e:
                logger.exception("Display rejected live layer from %s", session.source.url)
                error = FeedError(f"Could not display live layer: {e}")
            else:
                session.last_success = datetime.now(timezone.utc).isoformat()
                session.last_error = ""
        self._schedule(session)
        if error is not None:
            session.failures += 1
            session.last_error = str(error)
            self._report(session, error)

    # -- timer thread ----------------------------------------------------

    def _tick(self, session: PollSession) -> None:
        """Timer callback: fetch and parse off the writer, then hand back."""
        try:
            if not self._writer.call(self._begin_tick, session):
                return
        except RuntimeError:
            # writer already stopped (shutdown)
            return

        layer: Layer | None = None
        error: FeedError | None = None
        try:
            raw = self._fetcher.fetch(session.source)
            layer = self._parse(raw, LIVE)
            layer.metadata.setdefault("source", session.source.describe())
        except FeedError as e:
            error = e
        except Exception as e:
            logger.exception("Unexpected failure polling %s", session.source.url)
            error = FeedError(f"Unexpected error loading {session.source.url}: {e}")

        self._writer.submit(self._complete_tick, session, layer, error)

    def _report(self, session: PollSession, error: FeedError) -> None:
        logger.warning("Poll of %s failed: %s", session.source.url, error)
        self._publish("feed_error", {
            "url": session.source.url,
            "kind": error.kind,
            "message": str(error),
            "generation": session.generation,
        })
        if self._on_error is not None:
            self._on_error(session.source, error)

    def _publish(self, event_type: str, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event_type, data)
