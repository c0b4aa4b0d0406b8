from __future__ import annotations

from datetime import timedelta
import json
from pathlib import Path

import pytest

from wallpaper.errors import StoreError
from wallpaper.models import Cache, Config
from wallpaper.store import Store


def test_missing_files_write_defaults(store: Store):
    assert store.load_config(Config()) is None
    assert store.load_cache(Cache()) is None

    assert store.config_path.is_file()
    assert store.cache_path.is_file()
    assert Config.from_dict(json.loads(store.config_path.read_text())) == Config()
    assert Cache.from_dict(json.loads(store.cache_path.read_text())) == Cache()


def test_loads_existing_config(store: Store):
    store.config_dir.mkdir(parents=True)
    store.config_path.write_text(
        json.dumps(
            {
                "check_interval": "1m",
                "update_interval": "2h",
                "transitions": ["fade"],
                "images": {"a.png": "*"},
                "image_dir": "/pics",
                "fps": 60,
            }
        )
    )

    config = store.load_config(Config())

    assert config is not None
    assert config.check_interval == timedelta(minutes=1)
    assert config.update_interval == timedelta(hours=2)
    assert config.image_dir == Path("/pics")


def test_saved_cache_is_loaded_back(store: Store):
    cache = Cache(last_images={"DP-1": Path("/pics/a.png")}, last_transitions={"DP-1": "fade"})

    store.save_cache(cache)

    assert store.load_cache(Cache()) == cache


def test_malformed_json_is_an_error(store: Store):
    store.cache_dir.mkdir(parents=True)
    store.cache_path.write_text("{not json")

    with pytest.raises(StoreError, match="cache"):
        store.load_cache(Cache())


def test_invalid_config_is_an_error(store: Store):
    store.config_dir.mkdir(parents=True)
    store.config_path.write_text(json.dumps({"fps": 30}))

    with pytest.raises(StoreError, match="config"):
        store.load_config(Config())


def test_defaults_to_xdg_dirs(xdg_dirs: Path):
    store = Store()

    assert store.config_path == xdg_dirs / "config" / "wallpaper" / "config.json"
    assert store.cache_path == xdg_dirs / "cache" / "wallpaper" / "cache.json"


def test_oversized_interval_is_an_error(store: Store):
    store.config_dir.mkdir(parents=True)
    store.config_path.write_text(
        json.dumps(
            {
                "check_interval": "99999999999999y",
                "update_interval": "1h",
                "transitions": [],
                "images": {},
                "image_dir": "",
                "fps": 30,
            }
        )
    )

    with pytest.raises(StoreError, match="too long"):
        store.load_config(Config())
