"""Shared fixtures: isolated XDG directories, a recording presenter, seeded RNG."""

from __future__ import annotations

from pathlib import Path
import random

import pytest

from wallpaper.backends.base import CommandResult
from wallpaper.state import State
from wallpaper.store import Store


class FakePresenter:
    id = "fake"

    def __init__(self, monitors: list[str] | None = None) -> None:
        self.monitors = list(monitors) if monitors is not None else ["DP-1"]
        self.calls: list[tuple[Path, str, int, str | None]] = []
        self.initialized = False
        self.result = CommandResult(ok=True, returncode=0)

    def initialize(self) -> None:
        self.initialized = True

    def query_monitors(self) -> list[str]:
        return list(self.monitors)

    def set_image(
        self, image: Path, transition: str, fps: int, monitor: str | None
    ) -> CommandResult:
        self.calls.append((image, transition, fps, monitor))
        return self.result


@pytest.fixture
def xdg_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for variable, name in (
        ("XDG_CONFIG_HOME", "config"),
        ("XDG_CACHE_HOME", "cache"),
        ("XDG_RUNTIME_DIR", "run"),
    ):
        directory = tmp_path / name
        directory.mkdir()
        monkeypatch.setenv(variable, str(directory))
    return tmp_path


@pytest.fixture
def store(tmp_path: Path) -> Store:
    return Store(config_dir=tmp_path / "config", cache_dir=tmp_path / "cache")


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def state(store: Store, rng: random.Random) -> State:
    return State(store, rng=rng)


@pytest.fixture
def presenter() -> FakePresenter:
    return FakePresenter(["DP-1"])
