"""The daemon's main loop.

Each cycle:

1. work out how long until the next multiple of ``check_interval`` and run a
   selection pass for every monitor if a new ``update_interval`` bucket began
   since the last update,
2. wait on the control channel queue for at most that long,
3. handle the event that arrived, plus everything already queued behind it,
4. reload config and cache from disk.

The scheduler is the only code that mutates the ``State`` it is given.
"""

from __future__ import annotations

from datetime import time as time_of_day
import logging
from pathlib import Path
import queue
import threading
import time
from typing import Any, Callable

from wallpaper.backends.base import Presenter
from wallpaper.errors import SchedulerError
from wallpaper.ipc import IpcEvent, ReloadEvent, SelectEvent, SwitchEvent
from wallpaper.media import list_files
from wallpaper.models import ALL_DAY, Monitors
from wallpaper.selection import update_wallpapers
from wallpaper.state import State
from wallpaper.timefmt import duration_ns, timestamp_ns

logger = logging.getLogger(__name__)

NS_PER_SECOND = 1_000_000_000


class Scheduler:
    def __init__(
        self,
        state: State,
        presenter: Presenter,
        events: queue.Queue[IpcEvent],
        clock: Callable[[], int] = time.time_ns,
        now: Callable[[], time_of_day] | None = None,
        notifier: Any | None = None,
        exists: Callable[[Path], bool] = Path.is_file,
    ) -> None:
        self.state = state
        self.presenter = presenter
        self.events = events
        self.clock = clock
        self.now = now
        self.notifier = notifier
        self.exists = exists

    def run(self) -> None:
        logger.info("starting mainloop")
        while True:
            self.run_once()

    def run_once(self) -> None:
        to_sleep = self.compute_next_wake()
        timeout = to_sleep / NS_PER_SECOND
        if timeout > threading.TIMEOUT_MAX:
            raise SchedulerError(f"can't sleep that long: {to_sleep}ns")

        logger.debug("waiting %.3fs for the next check", timeout)
        try:
            event = self.events.get(timeout=timeout)
        except queue.Empty:
            pass
        else:
            self.handle_events(event)

        logger.debug("reloading state")
        self.state.reload()
        logger.debug("reloaded state")
        if self.notifier is not None:
            self.notifier.notify("WATCHDOG=1")

    def compute_next_wake(self) -> int:
        """Run a due update pass and return nanoseconds until the next check."""
        check_interval = duration_ns(self.state.config.check_interval)
        update_interval = duration_ns(self.state.config.update_interval)
        if check_interval <= 0 or update_interval <= 0:
            raise SchedulerError("check and update intervals must be greater than zero")

        current = self.clock()
        last = timestamp_ns(self.state.cache.last_update)
        if last // update_interval < current // update_interval:
            logger.info("updating wallpaper")
            self.update(Monitors.all())

        return check_interval - current % check_interval

    def handle_events(self, first: IpcEvent) -> None:
        self.handle(first)
        while True:
            try:
                event = self.events.get_nowait()
            except queue.Empty:
                return
            self.handle(event)

    def handle(self, event: IpcEvent) -> None:
        logger.info("handling %r", event)
        if isinstance(event, ReloadEvent):
            self.state.reload(force=True)
        elif isinstance(event, SwitchEvent):
            self.update(Monitors.only(event.monitor))
        elif isinstance(event, SelectEvent):
            self.select(event)
        else:
            logger.error("ignoring unknown event %r", event)

    def select(self, event: SelectEvent) -> None:
        files = list_files(Path(event.path))
        if not files:
            logger.warning("no files found at %s, keeping current images", event.path)
            return

        config = self.state.config
        images = dict(config.images) if event.keep_old else {}
        for path in files:
            images[str(path)] = [ALL_DAY]
        config.images = images
        logger.info("selected %d images from %s", len(files), event.path)
        self.update(Monitors.all())

    def update(self, target: Monitors) -> None:
        moment = self.now() if self.now is not None else None
        update_wallpapers(self.state, self.presenter, target, now=moment, exists=self.exists)
