"""Region cropper: erases ignored regions from a captured image."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from PIL import Image, ImageDraw

from src.capture.interfaces import DebugSink
from src.models.geometry import Rectangle, clip_box
from src.models.visual_check import IgnoreStrategy

logger = logging.getLogger(__name__)

IGNORE_FILL = (0, 0, 0, 0)


class RegionCropper:
    """Masks ignore rectangles in image space.

    Rectangles are given in page coordinates; the image starts
    ``top_adjustment`` pixels below the page origin.
    """

    def __init__(self, debug_sink: DebugSink | None = None):
        self.debug_sink = debug_sink

    def crop(
        self,
        image: Image.Image,
        ignores: Mapping[IgnoreStrategy, Iterable[Rectangle]],
        top_adjustment: int = 0,
    ) -> Image.Image:
        output = image
        for strategy in IgnoreStrategy.ordered():
            rects = sorted(ignores.get(strategy) or (), key=Rectangle.sort_key)
            if not rects:
                continue
            if output is image:
                output = image.convert("RGBA") if image.mode != "RGBA" else image.copy()
            masked = _mask(output, rects, top_adjustment)
            logger.debug("Ignored %d region(s) by %s (%d inside image)", len(rects), strategy.value, masked)
            self._debug(f"cropped_by_{strategy.value}", output)
        return output

    def _debug(self, label: str, image: Image.Image) -> None:
        if self.debug_sink is None:
            return
        try:
            self.debug_sink.emit(label, image.copy())
        except Exception as e:
            logger.debug("Debug snapshot '%s' failed: %s", label, e)


def _mask(image: Image.Image, rects: list[Rectangle], top_adjustment: int) -> int:
    draw = ImageDraw.Draw(image)
    masked = 0
    for rect in rects:
        if rect.is_empty:
            continue
        box = clip_box(rect.translated_box(0, -top_adjustment), image.width, image.height)
        if box is None:
            continue
        left, top, right, bottom = box
        # ImageDraw boxes are inclusive of the far edge
        draw.rectangle((left, top, right - 1, bottom - 1), fill=IGNORE_FILL)
        masked += 1
    return masked
