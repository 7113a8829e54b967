"""Screenshot debugger: saves intermediate images for diagnostics."""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)


class ScreenshotDebugger:
    """Writes labelled PNG snapshots to a debug directory.

    Best-effort: a failed write is logged and otherwise ignored.
    """

    def __init__(self, debug_dir: Path | None):
        self.debug_dir = debug_dir
        self._count = 0
        self._lock = threading.Lock()

    def emit(self, label: str, image: Image.Image) -> None:
        if self.debug_dir is None:
            return
        with self._lock:
            self._count += 1
            count = self._count
        safe_label = re.sub(r"[^\w.-]+", "_", label)
        path = self.debug_dir / f"{count:03d}_{safe_label}.png"
        try:
            self.debug_dir.mkdir(parents=True, exist_ok=True)
            image.save(path, format="PNG")
            logger.debug("Debug screenshot saved: %s", path)
        except Exception as e:
            logger.debug("Debug screenshot failed for %s: %s", label, e)
