"""Image and transition selection.

Images are drawn in four tiers, each a uniform draw without replacement that
is retried while the drawn file is missing:

1. images valid right now that no monitor is currently showing
2. images valid right now
3. every configured image
4. a fixed fallback image

A tier only falls through to the next once all of its candidates turned out
to be missing.
"""

from __future__ import annotations

from datetime import datetime, time
import logging
from pathlib import Path
import random
from typing import Callable, Collection, Iterable

from wallpaper.backends.base import Presenter
from wallpaper.errors import NoValidImageError, NoValidMonitorError
from wallpaper.models import Config, Monitors
from wallpaper.state import State

logger = logging.getLogger(__name__)

FALLBACK_IMAGE = Path("/usr/share/backgrounds/sway/Sway_Wallpaper_Blue_1920x1080.png")
DEFAULT_TRANSITION = "simple"


def image_tiers(config: Config, already_shown: Collection[Path], now: time) -> list[list[Path]]:
    images = config.image_paths()
    valid_now: list[Path] = []
    for path, times in images.items():
        valid = any(window.matches(now) for window in times)
        logger.debug("%s is valid? %s", path, valid)
        if valid:
            valid_now.append(path)
    return [
        [path for path in valid_now if path not in already_shown],
        valid_now,
        list(images),
        [FALLBACK_IMAGE],
    ]


def _draw(
    candidates: Iterable[Path],
    rng: random.Random,
    exists: Callable[[Path], bool],
    missing: set[Path],
) -> Path | None:
    pool = [path for path in candidates if path not in missing]
    while pool:
        candidate = pool.pop(rng.randrange(len(pool)))
        if exists(candidate):
            return candidate
        logger.error("image %s does not exist!", candidate)
        missing.add(candidate)
    return None


def select_image(
    config: Config,
    already_shown: Collection[Path],
    now: time,
    rng: random.Random,
    exists: Callable[[Path], bool] = Path.is_file,
) -> Path:
    missing: set[Path] = set()
    for tier, candidates in enumerate(image_tiers(config, already_shown, now), start=1):
        image = _draw(candidates, rng, exists, missing)
        if image is not None:
            logger.debug("picked %s from tier %d", image, tier)
            return image
    raise NoValidImageError("no valid image available")


def select_transition(config: Config, rng: random.Random) -> str:
    if not config.transitions:
        return DEFAULT_TRANSITION
    return rng.choice(config.transitions)


def resolve_monitors(configured: Monitors, target: Monitors, connected: list[str]) -> list[str]:
    for selector in (configured, target):
        for name in selector.names or ():
            if name not in connected:
                logger.warning("monitor %s not available", name)

    monitors = [
        name for name in connected if configured.includes(name) and target.includes(name)
    ]
    if not monitors:
        raise NoValidMonitorError("no valid monitor available")
    return monitors


def update_wallpapers(
    state: State,
    presenter: Presenter,
    target: Monitors | None = None,
    now: time | None = None,
    exists: Callable[[Path], bool] = Path.is_file,
) -> None:
    """Run one selection pass over every targeted, connected monitor."""
    target = target if target is not None else Monitors.all()
    monitors = resolve_monitors(state.config.monitors, target, presenter.query_monitors())
    moment = now if now is not None else datetime.now().time()

    # Tier 1 excludes what any monitor showed before this pass. Picks made
    # during the pass only update the cache.
    shown = frozenset(state.cache.last_images.values())
    for monitor in monitors:
        update_monitor(state, presenter, monitor, shown, moment, exists)


def update_monitor(
    state: State,
    presenter: Presenter,
    monitor: str,
    already_shown: Collection[Path],
    now: time,
    exists: Callable[[Path], bool] = Path.is_file,
) -> Path:
    image = select_image(state.config, already_shown, now, state.rng, exists)
    transition = select_transition(state.config, state.rng)

    if image != state.cache.last_images.get(monitor):
        logger.info(
            "updating %s to %s with transition %s", monitor, image, transition
        )
        result = presenter.set_image(image, transition, state.config.fps, monitor)
        if not result.ok:
            logger.error(
                "%s returned error. Exit Code: %s.\nStdout: %s\n\nStderr: %s",
                presenter.id,
                result.returncode,
                result.stdout,
                result.stderr,
            )
    else:
        logger.info("not changing wallpaper of %s because it is the same", monitor)

    state.cache.update(monitor, image, transition)
    state.save()
    return image
