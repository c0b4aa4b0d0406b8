"""On-disk persistence of the config and cache records.

Both records live in their own directory (see :mod:`wallpaper.env`). A
missing file is not an error: the store writes the value it was handed and
reports that there was nothing to load by returning ``None``. Once a file
exists, any failure to read or decode it is raised.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from wallpaper.env import get_cache_dir, get_config_dir
from wallpaper.errors import ConfigError, StoreError
from wallpaper.models import Cache, Config

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"
CACHE_FILE_NAME = "cache.json"


class Store:
    def __init__(self, config_dir: Path | None = None, cache_dir: Path | None = None) -> None:
        self.config_dir = config_dir if config_dir is not None else get_config_dir()
        self.cache_dir = cache_dir if cache_dir is not None else get_cache_dir()

    @property
    def config_path(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / CACHE_FILE_NAME

    def load_config(self, current: Config) -> Config | None:
        payload = self._load("config", self.config_dir, self.config_path)
        if payload is None:
            logger.info("no config file found. Writing default to %s", self.config_path)
            self.save_config(current)
            return None
        try:
            return Config.from_dict(payload)
        except ConfigError as exc:
            raise StoreError(f"while parsing config file {self.config_path}: {exc}") from exc

    def load_cache(self, current: Cache) -> Cache | None:
        payload = self._load("cache", self.cache_dir, self.cache_path)
        if payload is None:
            logger.info("no cache file found. Writing default to %s", self.cache_path)
            self.save_cache(current)
            return None
        try:
            return Cache.from_dict(payload)
        except ConfigError as exc:
            raise StoreError(f"while parsing cache file {self.cache_path}: {exc}") from exc

    def save_config(self, config: Config) -> None:
        self._write("config", self.config_dir, self.config_path, config.to_dict())

    def save_cache(self, cache: Cache) -> None:
        logger.debug("saving cache file")
        self._write("cache", self.cache_dir, self.cache_path, cache.to_dict())
        logger.debug("saved cache file")

    def _ensure_dir(self, kind: str, directory: Path) -> None:
        if directory.is_dir():
            return
        logger.info("%s dir does not exist. Creating it now", kind)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"while creating {kind} dir {directory}: {exc}") from exc

    def _load(self, kind: str, directory: Path, path: Path) -> Any | None:
        self._ensure_dir(kind, directory)
        if not path.is_file():
            return None
        logger.debug("reading %s file", kind)
        try:
            with open(path, "r", encoding="utf-8") as handle:
                return json.load(handle)
        except OSError as exc:
            raise StoreError(f"while opening {kind} file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StoreError(f"while parsing {kind} file {path}: {exc}") from exc

    def _write(self, kind: str, directory: Path, path: Path, payload: dict[str, Any]) -> None:
        self._ensure_dir(kind, directory)
        try:
            path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"while writing {kind} file {path}: {exc}") from exc
