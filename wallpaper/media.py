from __future__ import annotations

from pathlib import Path


def list_files(path: Path) -> list[Path]:
    """Every regular file at or below ``path``, in a stable order."""
    if path.is_file():
        return [path]
    if not path.is_dir():
        return []
    return sorted(
        (candidate for candidate in path.rglob("*") if candidate.is_file()),
        key=lambda candidate: str(candidate).lower(),
    )
