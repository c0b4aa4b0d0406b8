from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "wallpaper"
SOCKET_NAME = "wallpaper.socket"
FALLBACK_RUNTIME_DIR = Path("/tmp/wallpaper")


def _xdg_dir(variable: str, fallback: str) -> Path:
    value = os.environ.get(variable, "").strip()
    if value:
        base_dir = Path(value).expanduser()
    else:
        base_dir = Path(fallback).expanduser()
    return base_dir / APP_NAME


def get_config_dir() -> Path:
    return _xdg_dir("XDG_CONFIG_HOME", "~/.config")


def get_cache_dir() -> Path:
    return _xdg_dir("XDG_CACHE_HOME", "~/.cache")


def get_log_dir() -> Path:
    return get_cache_dir() / "logs"


def get_runtime_dir() -> Path:
    xdg_runtime_dir = os.environ.get("XDG_RUNTIME_DIR", "").strip()
    if xdg_runtime_dir:
        return Path(xdg_runtime_dir)
    return FALLBACK_RUNTIME_DIR


def get_socket_path() -> Path:
    return get_runtime_dir() / SOCKET_NAME
