from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import pyray as rl


def probe_image_size(image_path: Path) -> tuple[int, int] | None:
    """Decode ``image_path`` and return its size, or ``None`` if unreadable."""
    image = cast(Any, rl.load_image(str(image_path)))
    try:
        width = int(getattr(image, "width", 0))
        height = int(getattr(image, "height", 0))
    finally:
        rl.unload_image(cast(Any, image))

    if width <= 0 or height <= 0:
        return None
    return width, height
