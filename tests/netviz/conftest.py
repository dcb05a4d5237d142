"""Shared fixtures for netviz tests — virtual clock, scripted fetcher, recording display."""

from __future__ import annotations

import json
from typing import Callable

import pytest

from netviz.errors import NotFoundError
from netviz.feeds.controller import RefreshController
from netviz.feeds.source import FileSource, LiveSource
from netviz.feeds.writer import InlineWriter
from netviz.layers.display import LayerCanvas

FEED_URL = "https://feeds.example.com/quakes.geojson"
OTHER_URL = "https://other.example.com/stations.json"
DEFAULT_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/2.5_day.geojson"


def feature_collection(*names: str) -> bytes:
    """A minimal FeatureCollection with one Point per name."""
    return json.dumps({
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "id": name,
                "geometry": {"type": "Point", "coordinates": [-122.4 + i, 37.7]},
                "properties": {"name": name},
            }
            for i, name in enumerate(names)
        ],
    }).encode()


class _VirtualTimer:
    def __init__(self, clock: VirtualClock, due: float, callback: Callable[[], None]):
        self.clock = clock
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """Timer factory driven by ``advance`` instead of wall time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[_VirtualTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> _VirtualTimer:
        timer = _VirtualTimer(self, self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[_VirtualTimer]:
        return [t for t in self.timers if not t.cancelled and t.due is not None]

    def advance(self, seconds: float) -> None:
        """Move time forward, firing due timers in order."""
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            timer.due = None  # fired
            timer.callback()
        self.now = target


class ScriptedFetcher:
    """FeedFetcher stand-in: returns or raises per source, records every call."""

    def __init__(self) -> None:
        self.responses: dict = {}
        self.calls: list = []
        self.closed = False

    def set(self, source, result) -> None:
        self.responses[source] = result

    def fetch(self, source):
        self.calls.append(source)
        result = self.responses.get(source)
        if result is None:
            raise NotFoundError(f"No scripted response for {source.describe()}")
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result()
        return result

    def calls_for(self, url: str) -> int:
        return sum(1 for s in self.calls if isinstance(s, LiveSource) and s.url == url)

    def close(self) -> None:
        self.closed = True


class RecordingCanvas(LayerCanvas):
    """LayerCanvas that records register/deregister order and can be told to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.log: list[tuple[str, str]] = []
        self.fail_register = False
        self.fail_deregister = False

    def register_layer(self, layer) -> None:
        if self.fail_register:
            raise RuntimeError("display unavailable")
        self.log.append(("register", layer.layer_id))
        super().register_layer(layer)

    def deregister_layer(self, layer) -> None:
        if self.fail_deregister:
            raise RuntimeError("display unavailable")
        self.log.append(("deregister", layer.layer_id))
        super().deregister_layer(layer)


class MockEventBus:
    """Lightweight EventBus stand-in that records published events."""

    def __init__(self):
        self.published: list[tuple[str, dict]] = []

    def publish(self, event_type: str, data: dict | None = None):
        self.published.append((event_type, data))

    def types(self) -> list[str]:
        return [t for t, _ in self.published]


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def fetcher():
    f = ScriptedFetcher()
    f.set(LiveSource(FEED_URL), feature_collection("a", "b"))
    f.set(LiveSource(OTHER_URL), feature_collection("x"))
    f.set(LiveSource(DEFAULT_URL), feature_collection("q1", "q2", "q3"))
    return f


@pytest.fixture
def canvas():
    return RecordingCanvas()


@pytest.fixture
def event_bus():
    return MockEventBus()


@pytest.fixture
def controller(canvas, fetcher, clock, event_bus):
    return RefreshController(
        canvas,
        fetcher=fetcher,
        writer=InlineWriter(),
        timer_factory=clock,
        event_bus=event_bus,
        default_feed_url=DEFAULT_URL,
        default_interval=300,
    )


@pytest.fixture
def geojson_file(tmp_path, fetcher):
    """A real GeoJSON file on disk, also scripted into the fetcher."""
    path = tmp_path / "sites.geojson"
    content = feature_collection("site-1", "site-2")
    path.write_bytes(content)
    fetcher.set(FileSource(str(path)), content)
    return path
