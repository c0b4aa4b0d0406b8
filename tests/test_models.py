"""Tests for ValidTime, Monitors and the Config/Cache records."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
import json
from pathlib import Path

import pytest

from wallpaper.errors import ConfigError
from wallpaper.models import (
    ALL_DAY,
    CACHE_VERSION,
    TIME_MAX,
    Cache,
    Config,
    Monitors,
    ValidTime,
)
from wallpaper.timefmt import EPOCH


def _config_payload(**overrides):
    payload = {
        "check_interval": "5m",
        "update_interval": "1h",
        "transitions": ["fade", "wipe"],
        "images": {"a.png": "9-17", "b.png": ["*"]},
        "image_dir": "/pics",
        "fps": 60,
    }
    payload.update(overrides)
    return payload


class TestValidTime:
    def test_range_matches_inclusive_bounds(self):
        window = ValidTime.parse("9-17")

        assert window == ValidTime(time(9), time(17))
        assert window.matches(time(9))
        assert window.matches(time(12, 30))
        assert window.matches(time(17))
        assert not window.matches(time(8, 59, 59))
        assert not window.matches(time(17, 0, 1))

    def test_all_day_matches_last_instant(self):
        assert ValidTime.parse("*") == ALL_DAY
        assert ALL_DAY.matches(time.min)
        assert ALL_DAY.matches(time(23, 59, 59, 999999))

    def test_hour_24_is_end_of_day(self):
        window = ValidTime.parse("18-24")

        assert window.end == TIME_MAX
        assert window.matches(time(23, 59, 59, 999999))

    def test_single_time_spans_one_hour(self):
        assert ValidTime.parse("9") == ValidTime(time(9), time(10))
        assert ValidTime.parse("9:30") == ValidTime(time(9, 30), time(10, 30))
        assert ValidTime.parse("09:30:15") == ValidTime(time(9, 30, 15), time(10, 30, 15))

    def test_minutes_and_seconds_in_ranges(self):
        window = ValidTime.parse(" 06:15-07:45:30 ")

        assert window == ValidTime(time(6, 15), time(7, 45, 30))

    @pytest.mark.parametrize("text", ["25", "abc", "9-x", "", "7:99"])
    def test_invalid_times_are_rejected(self, text):
        with pytest.raises(ConfigError):
            ValidTime.parse(text)

    def test_check_reports_inverted_window(self):
        assert ValidTime.parse("9-17").check() is None
        problem = ValidTime.parse("17-9").check()

        assert problem is not None
        assert "must be before" in problem

    def test_inverted_window_is_kept_as_is(self):
        window = ValidTime.parse("17-9")

        assert window.start == time(17)
        assert not window.matches(time(12))

    def test_text_form(self):
        assert str(ALL_DAY) == "*"
        assert str(ValidTime.parse("9:30-17")) == "09:30-17"
        assert str(ValidTime.parse("9-24")) == "09-24"
        assert str(ValidTime.parse("1:02:03-4")) == "01:02:03-04"


class TestMonitors:
    def test_all_includes_everything(self):
        assert Monitors.all().includes("anything")
        assert Monitors.all().is_all

    def test_some_is_membership(self):
        monitors = Monitors.some(["DP-1"])

        assert monitors.includes("DP-1")
        assert not monitors.includes("HDMI-1")
        assert not monitors.is_all

    def test_only(self):
        assert Monitors.only(None) == Monitors.all()
        assert Monitors.only("DP-1") == Monitors.some(["DP-1"])


class TestConfig:
    def test_from_dict(self):
        config = Config.from_dict(_config_payload())

        assert config.check_interval == timedelta(minutes=5)
        assert config.update_interval == timedelta(hours=1)
        assert config.transitions == ["fade", "wipe"]
        assert config.images == {
            "a.png": [ValidTime(time(9), time(17))],
            "b.png": [ALL_DAY],
        }
        assert config.image_dir == Path("/pics")
        assert config.fps == 60
        assert config.monitors == Monitors.all()

    def test_monitor_list(self):
        config = Config.from_dict(_config_payload(monitors=["DP-1", "HDMI-1"]))

        assert config.monitors == Monitors.some(["DP-1", "HDMI-1"])

    def test_null_monitors_means_all(self):
        assert Config.from_dict(_config_payload(monitors=None)).monitors.is_all

    def test_survives_json(self):
        config = Config(
            check_interval=timedelta(minutes=2, seconds=30),
            update_interval=timedelta(hours=1, minutes=30),
            transitions=["grow"],
            images={
                "a.png": [ValidTime.parse("9-17")],
                "b.png": [ALL_DAY, ValidTime.parse("1:15-2")],
            },
            image_dir=Path("/pics"),
            fps=144,
            monitors=Monitors.some(["DP-1"]),
        )

        decoded = Config.from_dict(json.loads(json.dumps(config.to_dict())))

        assert decoded == config

    def test_single_window_is_written_as_string(self):
        config = Config(images={"a.png": [ValidTime.parse("9-17")]})

        assert config.to_dict()["images"] == {"a.png": "09-17"}
        assert "monitors" not in config.to_dict()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"fps": 256},
            {"fps": -1},
            {"fps": True},
            {"check_interval": "0s"},
            {"update_interval": "soon"},
            {"images": {"a.png": []}},
            {"images": {"a.png": "9-x"}},
            {"transitions": "fade"},
            {"monitors": "DP-1"},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigError):
            Config.from_dict(_config_payload(**overrides))

    def test_missing_field(self):
        payload = _config_payload()
        del payload["image_dir"]

        with pytest.raises(ConfigError, match="image_dir"):
            Config.from_dict(payload)

    def test_fingerprint_tracks_content(self):
        config = Config.from_dict(_config_payload())
        same = Config.from_dict(_config_payload())
        other = Config.from_dict(_config_payload(fps=30))

        assert config.fingerprint() == same.fingerprint()
        assert config.fingerprint() != other.fingerprint()

    def test_image_paths_are_joined(self):
        config = Config(images={"a.png": [ALL_DAY], "/abs/b.png": [ALL_DAY]}, image_dir=Path("/pics"))

        assert list(config.image_paths()) == [Path("/pics/a.png"), Path("/abs/b.png")]


class TestCache:
    def test_default(self):
        cache = Cache()

        assert cache.version == CACHE_VERSION
        assert cache.last_update == EPOCH
        assert cache.last_images == {}
        assert cache.last_transitions == {}

    def test_update(self):
        cache = Cache()
        moment = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

        cache.update("DP-1", Path("/pics/a.png"), "fade", now=moment)

        assert cache.last_images == {"DP-1": Path("/pics/a.png")}
        assert cache.last_transitions == {"DP-1": "fade"}
        assert cache.last_update == moment

    def test_survives_json(self):
        cache = Cache(
            last_update=datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc),
            last_transitions={"DP-1": "fade"},
            last_images={"DP-1": Path("/pics/a.png")},
        )

        decoded = Cache.from_dict(json.loads(json.dumps(cache.to_dict())))

        assert decoded == cache

    def test_wire_shape(self):
        payload = Cache(last_images={"DP-1": Path("/a.png")}).to_dict()

        assert payload == {
            "version": 0,
            "last_update": "1970-01-01T00:00:00.000000Z",
            "last_transitions": {},
            "last_images": {"DP-1": "/a.png"},
        }

    def test_nanosecond_timestamps_are_truncated(self):
        cache = Cache.from_dict(
            {
                "version": 0,
                "last_update": "2024-05-01T12:30:15.123456789Z",
                "last_transitions": {},
                "last_images": {},
            }
        )

        assert cache.last_update == datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)

    def test_fingerprint_ignores_last_update(self):
        first = Cache(last_images={"DP-1": Path("/a.png")})
        second = Cache(
            last_images={"DP-1": Path("/a.png")},
            last_update=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )

        assert first.fingerprint() == second.fingerprint()
        assert first.fingerprint() != Cache().fingerprint()

    def test_rejects_bad_entries(self):
        with pytest.raises(ConfigError):
            Cache.from_dict(
                {
                    "version": 0,
                    "last_update": "1970-01-01T00:00:00Z",
                    "last_transitions": {},
                    "last_images": {"DP-1": 3},
                }
            )
