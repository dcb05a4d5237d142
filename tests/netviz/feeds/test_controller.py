"""Tests for RefreshController — open file, open link, set interval, status, shutdown."""

import pytest

from netviz.errors import NetworkError, NotFoundError
from netviz.feeds.controller import ActionResult
from netviz.feeds.scheduler import SchedulerState
from netviz.feeds.source import FileSource, LiveSource
from netviz.layers import FILE, LIVE
from tests.netviz.conftest import DEFAULT_URL, FEED_URL, OTHER_URL, feature_collection


@pytest.mark.unit
class TestOpenFile:

    def test_loads_file_layer(self, controller, geojson_file, canvas):
        result = controller.open_file(str(geojson_file))
        assert result.ok
        assert result.layer.tag == FILE
        assert len(result.layer.features) == 2
        assert controller.store.get(FILE) is result.layer
        assert result.layer.metadata["source"] == str(geojson_file)
        assert canvas.redraw_count == 1

    def test_reopening_replaces_previous_file_layer(self, controller, geojson_file, canvas):
        first = controller.open_file(str(geojson_file)).layer
        second = controller.open_file(str(geojson_file)).layer
        assert first is not second
        assert canvas.layers == [second]

    def test_does_not_arm_polling(self, controller, geojson_file, clock):
        controller.open_file(str(geojson_file))
        assert controller.scheduler.state is SchedulerState.IDLE
        assert clock.pending == []

    @pytest.mark.parametrize("path", ["data/sites.kml", "notes.txt", "", "   "])
    def test_rejects_non_json_paths(self, controller, fetcher, path):
        result = controller.open_file(path)
        assert not result.ok
        assert result.kind == "validation"
        assert fetcher.calls == []

    def test_missing_file_keeps_prior_layer(self, controller, geojson_file, fetcher, tmp_path):
        prior = controller.open_file(str(geojson_file)).layer
        missing = str(tmp_path / "gone.json")
        fetcher.set(FileSource(missing), NotFoundError(f"File not found: {missing}"))
        result = controller.open_file(missing)
        assert not result.ok
        assert result.kind == "fetch"
        assert result.message.startswith("Error processing the JSON file")
        assert controller.store.get(FILE) is prior

    def test_malformed_file_keeps_prior_layer(self, controller, geojson_file, fetcher, tmp_path):
        prior = controller.open_file(str(geojson_file)).layer
        bad = str(tmp_path / "bad.json")
        fetcher.set(FileSource(bad), b"{not json")
        result = controller.open_file(bad)
        assert result.kind == "parse"
        assert controller.store.get(FILE) is prior

    def test_deeply_nested_file_is_a_parse_failure(self, controller, geojson_file, fetcher, tmp_path):
        prior = controller.open_file(str(geojson_file)).layer
        deep = str(tmp_path / "deep.json")
        fetcher.set(FileSource(deep), b"[" * 200000)
        result = controller.open_file(deep)
        assert not result.ok
        assert result.kind == "parse"
        assert "nested too deeply" in result.message
        assert controller.store.get(FILE) is prior

    def test_display_failure_reported(self, controller, geojson_file, canvas):
        canvas.fail_register = True
        result = controller.open_file(str(geojson_file))
        assert not result.ok
        assert result.kind == "display"


@pytest.mark.unit
class TestOpenLink:

    def test_loads_and_arms(self, controller, clock, fetcher):
        result = controller.open_link(FEED_URL)
        assert result.ok
        assert result.layer.tag == LIVE
        assert result.interval == 300
        assert controller.scheduler.state is SchedulerState.ARMED
        assert controller.scheduler.session.source == LiveSource(FEED_URL)
        assert [t.due for t in clock.pending] == [300.0]
        assert fetcher.calls_for(FEED_URL) == 1

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_uses_default_feed(self, controller, fetcher, raw):
        result = controller.open_link(raw)
        assert result.ok
        assert controller.scheduler.session.source == LiveSource(DEFAULT_URL)
        assert fetcher.calls_for(DEFAULT_URL) == 1
        assert len(result.layer.features) == 3

    def test_empty_matches_explicit_default(self, controller, fetcher, canvas):
        implicit = controller.open_link("")
        explicit = controller.open_link(DEFAULT_URL)
        assert implicit.message == explicit.message
        assert implicit.interval == explicit.interval
        assert fetcher.calls_for(DEFAULT_URL) == 2
        assert len(canvas.layers) == 1

    @pytest.mark.parametrize("url", [
        "https://feeds.example.com/quakes.xml",
        "ftp://feeds.example.com/quakes.json",
        "feeds.example.com/quakes.json",
        "https:///quakes.json",
    ])
    def test_rejects_invalid_urls(self, controller, fetcher, url):
        result = controller.open_link(url)
        assert not result.ok
        assert result.kind == "validation"
        assert "Invalid JSON Feed URL" in result.message
        assert fetcher.calls == []
        assert controller.scheduler.state is SchedulerState.IDLE

    def test_query_string_allowed(self, controller, fetcher):
        url = "https://feeds.example.com/quakes.geojson?minmag=4"
        fetcher.set(LiveSource(url), feature_collection("big"))
        assert controller.open_link(url).ok

    def test_fetch_failure_does_not_arm(self, controller, fetcher):
        fetcher.set(LiveSource(FEED_URL), NetworkError("Could not fetch"))
        result = controller.open_link(FEED_URL)
        assert not result.ok
        assert result.kind == "fetch"
        assert result.message.startswith("Error loading GeoJSON data")
        assert controller.scheduler.state is SchedulerState.IDLE

    def test_failure_leaves_existing_session(self, controller, fetcher):
        controller.open_link(FEED_URL)
        session = controller.scheduler.session
        fetcher.set(LiveSource(OTHER_URL), b"garbage")
        result = controller.open_link(OTHER_URL)
        assert result.kind == "parse"
        assert controller.scheduler.session is session

    def test_deeply_nested_feed_does_not_arm(self, controller, fetcher):
        fetcher.set(LiveSource(FEED_URL), b"[" * 200000)
        result = controller.open_link(FEED_URL)
        assert not result.ok
        assert result.kind == "parse"
        assert result.message.startswith("Error loading GeoJSON data")
        assert controller.scheduler.state is SchedulerState.IDLE

    def test_new_link_cancels_old_session(self, controller, clock, fetcher):
        controller.open_link(FEED_URL)
        controller.open_link(OTHER_URL)
        clock.advance(900)
        assert fetcher.calls_for(FEED_URL) == 1  # the initial load only
        assert fetcher.calls_for(OTHER_URL) == 4
        assert len(clock.pending) == 1

    def test_tick_failure_keeps_live_layer(self, controller, clock, fetcher, event_bus):
        controller.open_link(FEED_URL)
        layer = controller.store.get(LIVE)
        fetcher.set(LiveSource(FEED_URL), NetworkError("timeout"))
        clock.advance(300)
        assert controller.store.get(LIVE) is layer
        assert controller.scheduler.state is SchedulerState.ARMED
        assert "feed_error" in event_bus.types()


@pytest.mark.unit
class TestSetInterval:

    def test_sets_interval_without_session(self, controller, clock):
        result = controller.set_interval("30", "seconds")
        assert result.ok
        assert result.message == "Query Interval: 30 seconds"
        assert controller.interval.seconds == 30
        assert controller.scheduler.state is SchedulerState.IDLE
        assert clock.pending == []

    def test_new_interval_used_by_next_link(self, controller, clock):
        controller.set_interval("1", "minutes")
        result = controller.open_link(FEED_URL)
        assert result.interval == 60
        assert [t.due for t in clock.pending] == [60.0]

    def test_rearms_live_session(self, controller, clock, fetcher):
        controller.open_link(FEED_URL)
        clock.advance(100)
        controller.set_interval("20", "seconds")
        assert controller.scheduler.session.interval.seconds == 20
        assert fetcher.calls_for(FEED_URL) == 1  # no immediate fetch
        clock.advance(20)
        assert fetcher.calls_for(FEED_URL) == 2

    @pytest.mark.parametrize("text,unit,kind_word", [
        ("", "seconds", "empty"),
        ("301", "seconds", "between"),
        ("10", "minutes", "between"),
        ("abc", "seconds", "whole number"),
    ])
    def test_invalid_leaves_session_untouched(self, controller, text, unit, kind_word):
        controller.open_link(FEED_URL)
        session = controller.scheduler.session
        result = controller.set_interval(text, unit)
        assert not result.ok
        assert result.kind == "validation"
        assert kind_word in result.message
        assert controller.scheduler.session is session
        assert controller.interval.seconds == 300

    def test_publishes_interval_changed(self, controller, event_bus):
        controller.set_interval("2", "minutes")
        (data,) = [d for t, d in event_bus.published if t == "interval_changed"]
        assert data == {"interval": 120}


@pytest.mark.unit
class TestStatusStopShutdown:

    def test_status(self, controller, geojson_file):
        controller.open_file(str(geojson_file))
        controller.open_link(FEED_URL)
        status = controller.status()
        assert status["state"] == "armed"
        assert status["interval"] == 300
        assert status["session"]["url"] == FEED_URL
        assert [l["tag"] for l in status["layers"]] == [FILE, LIVE]

    def test_stop_keeps_last_layer(self, controller, clock, fetcher):
        controller.open_link(FEED_URL)
        result = controller.stop()
        assert result.ok
        clock.advance(1000)
        assert fetcher.calls_for(FEED_URL) == 1
        assert controller.store.get(LIVE) is not None
        assert controller.status()["session"] is None

    def test_shutdown_clears_everything(self, controller, geojson_file, canvas, fetcher, clock):
        controller.open_file(str(geojson_file))
        controller.open_link(FEED_URL)
        controller.shutdown()
        assert canvas.layers == []
        assert controller.scheduler.state is SchedulerState.IDLE
        assert fetcher.closed
        clock.advance(1000)
        assert fetcher.calls_for(FEED_URL) == 1

    def test_action_result_to_dict(self, controller):
        result = controller.open_link(FEED_URL)
        out = result.to_dict()
        assert out["ok"] is True
        assert out["layer"]["tag"] == LIVE
        assert out["layer"]["features"] == 2
        assert ActionResult(False, "nope", kind="fetch").to_dict() == {
            "ok": False, "message": "nope", "kind": "fetch",
        }
