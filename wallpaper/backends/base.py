from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import subprocess
from typing import Protocol


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def launched(self) -> bool:
        return self.returncode is not None


class Presenter(Protocol):
    """External program that paints wallpapers and reports displays."""

    id: str

    def initialize(self) -> None: ...

    def query_monitors(self) -> list[str]: ...

    def set_image(
        self, image: Path, transition: str, fps: int, monitor: str | None
    ) -> CommandResult: ...


def run_command(command: list[str]) -> CommandResult:
    # No timeout: a hung presenter blocks the caller.
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        return CommandResult(ok=False, error=str(exc))

    if result.returncode != 0:
        return CommandResult(
            ok=False,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            error=f"Command failed with exit code {result.returncode}: {' '.join(command)}",
        )
    return CommandResult(
        ok=True,
        returncode=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
    )


def parse_monitor_names(output: str) -> list[str]:
    names: list[str] = []
    for line in output.splitlines():
        name, sep, _rest = line.partition(":")
        name = name.strip()
        if sep and name:
            names.append(name)
    return names
