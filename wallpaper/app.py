from __future__ import annotations

import logging
from pathlib import Path
import signal
from typing import Any, Callable

import sdnotify

from wallpaper.backends.base import Presenter
from wallpaper.backends.swww import SwwwPresenter
from wallpaper.daemon import Scheduler
from wallpaper.errors import IpcConnectError
from wallpaper.ipc import Client, IpcEvent, Listener, ReloadEvent, SelectEvent, SwitchEvent
from wallpaper.logging_config import log_service_start
from wallpaper.models import Config, Monitors
from wallpaper.selection import update_wallpapers
from wallpaper.state import State
from wallpaper.timefmt import format_duration, format_timestamp

logger = logging.getLogger(__name__)


def _exit_on_signal(signum: int, frame: Any) -> None:
    logger.info("received signal %s, shutting down", signum)
    raise SystemExit(0)


def run_daemon(args: Any) -> int:
    log_service_start(logger, "wallpaper daemon")
    signal.signal(signal.SIGTERM, _exit_on_signal)
    signal.signal(signal.SIGINT, _exit_on_signal)

    state = State.load()
    presenter = SwwwPresenter()
    presenter.initialize()
    notifier = sdnotify.SystemdNotifier()

    with Listener.bind() as listener:
        notifier.notify("READY=1")
        logger.info("listening on %s", listener.socket_path)
        try:
            Scheduler(state, presenter, listener.events, notifier=notifier).run()
        finally:
            notifier.notify("STOPPING=1")
    return 0


def send_event(event: IpcEvent, socket_path: Path | None = None) -> None:
    with Client.connect(socket_path) as client:
        client.send(event)
    logger.debug("sent %r", event)


def switch_locally(state: State, presenter: Presenter, monitor: str | None) -> None:
    presenter.initialize()
    logger.info("switching one time")
    update_wallpapers(state, presenter, Monitors.only(monitor))
    logger.info("switched one time")


def run_switch(args: Any) -> int:
    try:
        send_event(SwitchEvent(monitor=args.monitor))
    except IpcConnectError as exc:
        logger.info("no daemon reachable (%s), switching locally", exc)
        switch_locally(State.load(), SwwwPresenter(), args.monitor)
    return 0


def run_select(args: Any) -> int:
    path = Path(args.path).expanduser().resolve()
    if not path.exists():
        logger.error("%s does not exist", path)
        return 1
    send_event(SelectEvent(path=str(path), keep_old=args.keep_old))
    return 0


def run_reload(args: Any) -> int:
    send_event(ReloadEvent())
    return 0


def check_config(
    config: Config,
    connected: list[str],
    probe: Callable[[Path], tuple[int, int] | None] | None = None,
    exists: Callable[[Path], bool] = Path.is_file,
) -> int:
    """Log every problem found in ``config`` and return how many errors there were."""
    logger.info("checking the config for errors")
    errors = 0
    for image, times in config.image_paths().items():
        if not exists(image):
            logger.error("image %s does not exist!", image)
            errors += 1
        elif probe is not None and probe(image) is None:
            logger.error("image %s can't be decoded", image)
            errors += 1
        for window in times:
            problem = window.check()
            if problem is not None:
                logger.error(
                    "image %s: %s. Consider creating multiple time slots", image, problem
                )
                errors += 1

    for monitor in config.monitors.names or ():
        if monitor not in connected:
            logger.warning("monitor %s not available", monitor)

    logger.info("checked the config for errors")
    return errors


def run_check(args: Any) -> int:
    from wallpaper.probe import probe_image_size

    state = State.load()
    connected = SwwwPresenter().query_monitors()
    errors = check_config(state.config, connected, probe=probe_image_size)
    return 1 if errors else 0


def format_state(state: State) -> str:
    cache = state.cache
    config = state.config
    lines: list[str] = []
    lines.append(f"last update: {format_timestamp(cache.last_update)}")
    for monitor, transition in sorted(cache.last_transitions.items()):
        lines.append(f"last transition for monitor {monitor}: {transition}")
    for monitor, image in sorted(cache.last_images.items()):
        lines.append(f"last image for monitor {monitor}: {image}")
    lines.append(f"check interval: {format_duration(config.check_interval)}")
    lines.append(f"update interval: {format_duration(config.update_interval)}")
    lines.append(
        "transitions: " + (", ".join(config.transitions) if config.transitions else "(none)")
    )
    lines.append("images:")
    for name, times in config.images.items():
        lines.append(f"  {name}: [{', '.join(str(window) for window in times)}]")
    lines.append(f"image directory: {config.image_dir}")
    lines.append(f"fps: {config.fps}")
    if config.monitors.names is None:
        lines.append("monitors: all")
    else:
        lines.append(f"monitors: {', '.join(config.monitors.names)}")
    return "\n".join(lines)


def run_print(args: Any) -> int:
    print(format_state(State.load()))
    return 0
