from __future__ import annotations

import logging
from pathlib import Path
import shutil
import subprocess
import time

from wallpaper.backends.base import CommandResult, parse_monitor_names, run_command
from wallpaper.errors import PresenterError

logger = logging.getLogger(__name__)

TRANSITION_STEP = 2
DAEMON_START_ATTEMPTS = 50
DAEMON_START_POLL = 0.1


class SwwwPresenter:
    def __init__(self, binary: str = "swww") -> None:
        self.binary = binary
        self.id = binary

    def initialize(self) -> None:
        logger.debug("initializing %s", self.binary)
        query = run_command([self.binary, "query"])
        if query.ok:
            logger.debug("%s daemon already running", self.binary)
            return

        init_result = run_command([self.binary, "init"])
        if init_result.ok:
            logger.debug("initialized %s", self.binary)
            return

        daemon = f"{self.binary}-daemon"
        if shutil.which(daemon) and self._start_daemon(daemon):
            return

        if not init_result.launched:
            raise PresenterError(f"while initializing {self.binary}: {init_result.error}")
        logger.warning(
            "%s init returned exit code %s: %s",
            self.binary,
            init_result.returncode,
            init_result.stderr.strip(),
        )

    def _start_daemon(self, daemon: str) -> bool:
        logger.info("starting %s", daemon)
        try:
            subprocess.Popen(
                [daemon],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            logger.error("failed to start %s: %s", daemon, exc)
            return False

        for _ in range(DAEMON_START_ATTEMPTS):
            if run_command([self.binary, "query"]).ok:
                return True
            time.sleep(DAEMON_START_POLL)
        logger.error("%s did not come up", daemon)
        return False

    def query_monitors(self) -> list[str]:
        result = run_command([self.binary, "query"])
        if not result.ok:
            detail = result.stderr.strip() or result.error
            raise PresenterError(f"while querying monitors from {self.binary}: {detail}")
        return parse_monitor_names(result.stdout)

    def set_image(
        self, image: Path, transition: str, fps: int, monitor: str | None
    ) -> CommandResult:
        command = [
            self.binary,
            "img",
            f"--transition-step={TRANSITION_STEP}",
            "--transition-fps",
            str(fps),
            "--transition-type",
            transition,
        ]
        if monitor is not None:
            command.extend(["--outputs", monitor])
        command.append(str(image))

        result = run_command(command)
        if not result.launched:
            raise PresenterError(f"while executing {self.binary}: {result.error}")
        return result
