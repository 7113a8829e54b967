"""Playwright-backed collaborators: viewport tile capture and element bounds."""

from __future__ import annotations

import io
import logging
import math

from PIL import Image
from playwright.sync_api import Page

from src.capture.strategy import CaptureStrategy
from src.errors import CollaboratorError
from src.models.geometry import Locator, Rectangle

logger = logging.getLogger(__name__)

MAX_TILES = 50


def _to_image(png: bytes) -> Image.Image:
    with Image.open(io.BytesIO(png)) as img:
        img.load()
        return img.convert("RGBA")


def _drop_rows(tile: Image.Image, keep_top: int, count: int) -> Image.Image:
    """Remove ``count`` rows starting at ``keep_top``, keeping the rows above."""
    if count <= 0:
        return tile
    width, height = tile.size
    count = min(count, height - keep_top)
    result = Image.new(tile.mode, (width, height - count))
    result.paste(tile.crop((0, 0, width, keep_top)), (0, 0))
    result.paste(tile.crop((0, keep_top + count, width, height)), (0, keep_top))
    return result


class PlaywrightCaptureProvider:
    """Captures viewport tiles from a page, or a single tile for an element.

    The search context is a sync-API ``Page``, or a ``Locator``/``ElementHandle``
    for element checks. Scrolling between tiles accounts for the header and
    footer that the strategy will cut, so stitched tiles do not overlap.
    """

    def capture_raw_tiles(self, context, strategy: CaptureStrategy) -> list[Image.Image]:
        if not isinstance(context, Page):
            return [_to_image(context.screenshot())]
        if not strategy.full_page:
            return [_to_image(context.screenshot(full_page=False))]
        return self._capture_scrolling(context, strategy)

    def capture_origin(self, context, strategy: CaptureStrategy) -> int:
        """Viewport shots start at the current scroll position; scrolling captures at the top."""
        if not isinstance(context, Page) or strategy.full_page:
            return 0
        scroll_y = context.evaluate("window.scrollY")
        return round(scroll_y * strategy.dpr)

    def _capture_scrolling(self, page: Page, strategy: CaptureStrategy) -> list[Image.Image]:
        viewport_height = page.evaluate("window.innerHeight")
        page_height = page.evaluate(
            "Math.max(document.body.scrollHeight, document.documentElement.scrollHeight)"
        )
        step = viewport_height - (strategy.header_cut + strategy.footer_cut) / strategy.dpr
        if step <= 0:
            raise CollaboratorError(
                f"Header and footer cut ({strategy.header_cut}+{strategy.footer_cut}px) "
                f"cover the whole viewport ({viewport_height}px)"
            )

        tiles: list[Image.Image] = []
        target = 0.0
        while len(tiles) < MAX_TILES:
            wanted = int(target)
            page.evaluate("y => window.scrollTo(0, y)", wanted)
            actual = page.evaluate("window.scrollY")
            tile = _to_image(page.screenshot(full_page=False))
            # The last scroll is clamped by the browser; drop the rows already captured
            if tiles and actual < wanted:
                tile = _drop_rows(tile, strategy.header_cut, round((wanted - actual) * strategy.dpr))
            tiles.append(tile)
            if actual + viewport_height >= page_height:
                break
            target += step
        else:
            logger.warning("Stopped scrolling capture after %d tiles", MAX_TILES)

        logger.debug("Captured %d tile(s) of a %dpx page", len(tiles), page_height)
        return tiles


class PlaywrightLocatorResolver:
    """Resolves locators to element bounds in page coordinates (logical pixels)."""

    def __init__(self, page: Page):
        self.page = page

    def resolve(self, locator: Locator) -> set[Rectangle]:
        scroll_x, scroll_y = self.page.evaluate("[window.scrollX, window.scrollY]")
        rects = set()
        for element in self.page.locator(locator.to_selector()).all():
            box = element.bounding_box()
            if box is None:
                continue
            left = box["x"] + scroll_x
            top = box["y"] + scroll_y
            right = left + box["width"]
            bottom = top + box["height"]
            x = max(math.floor(left), 0)
            y = max(math.floor(top), 0)
            width = max(math.ceil(right) - x, 0)
            height = max(math.ceil(bottom) - y, 0)
            rects.add(Rectangle(x=x, y=y, width=width, height=height))
        return rects


class PlaywrightContextProvider:
    """Hands out the page while it is open."""

    def __init__(self, page: Page):
        self.page = page

    def get_search_context(self) -> Page | None:
        if self.page.is_closed():
            return None
        return self.page
