"""Capture provider reading pre-captured PNG tiles from disk."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from PIL import Image

from src.capture.strategy import CaptureStrategy

logger = logging.getLogger(__name__)


class FileCaptureProvider:
    """The search context is a path, or an ordered sequence of tile paths."""

    def capture_raw_tiles(self, context: str | Path | Sequence[str | Path], strategy: CaptureStrategy) -> list[Image.Image]:
        paths = [Path(context)] if isinstance(context, (str, Path)) else [Path(p) for p in context]
        if not strategy.full_page:
            paths = paths[:1]
        tiles = []
        for path in paths:
            with Image.open(path) as img:
                img.load()
                tiles.append(img.convert("RGBA"))
        logger.debug("Loaded %d tile(s) for %s", len(tiles), strategy.name)
        return tiles

    def capture_origin(self, context, strategy: CaptureStrategy) -> int:
        # Tile files always start at the top of the page
        return 0
