"""Capture strategy composition: turns raw captured tiles into one normalized image.

A strategy is an ordered list of tile transforms (device-pixel-ratio scaling,
then an optional header/footer cut) followed by a base capture that stitches
the transformed tiles together. Strategies are built once per screenshot
configuration and replayed for every capture.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from PIL import Image

from src.errors import ConfigurationError
from src.models.config import ScreenshotParameters
from src.models.geometry import Rectangle

logger = logging.getLogger(__name__)


class TileTransform(Protocol):
    def apply(self, tile: Image.Image) -> Image.Image:
        ...

    def map_rectangle(self, rect: Rectangle) -> Rectangle:
        ...


class ScalingTransform:
    """Maps logical (CSS) coordinates to physical pixels.

    Captured tiles are already physical, so tiles pass through untouched.
    """

    def __init__(self, dpr: float):
        if dpr <= 0:
            raise ConfigurationError(
                f"Device pixel ratio must be greater than 0, got {dpr}", context={"dpr": dpr}
            )
        self.dpr = dpr

    def apply(self, tile: Image.Image) -> Image.Image:
        return tile

    def map_rectangle(self, rect: Rectangle) -> Rectangle:
        if self.dpr == 1:
            return rect
        return rect.scale(self.dpr)

    def __repr__(self) -> str:
        return f"ScalingTransform(dpr={self.dpr})"


class CuttingTransform:
    """Removes a fixed header and footer from every tile before stitching."""

    def __init__(self, header: int, footer: int):
        self.header = header
        self.footer = footer

    def apply(self, tile: Image.Image) -> Image.Image:
        width, height = tile.size
        bottom = max(height - self.footer, 0)
        top = min(self.header, bottom)
        return tile.crop((0, top, width, bottom))

    def map_rectangle(self, rect: Rectangle) -> Rectangle:
        return rect

    def __repr__(self) -> str:
        return f"CuttingTransform(header={self.header}, footer={self.footer})"


class BaseCapture:
    """Assembles the transformed tiles into the final image."""

    name = ""
    full_page = False

    def assemble(self, tiles: list[Image.Image]) -> Image.Image:
        raise NotImplementedError


class ViewportCapture(BaseCapture):
    name = "VIEWPORT"

    def assemble(self, tiles: list[Image.Image]) -> Image.Image:
        return tiles[0].convert("RGBA")


class ViewportPastingCapture(BaseCapture):
    """Scrolling capture: tiles are pasted one under another."""

    name = "VIEWPORT_PASTING"
    full_page = True

    def assemble(self, tiles: list[Image.Image]) -> Image.Image:
        width = max(t.width for t in tiles)
        height = sum(t.height for t in tiles)
        image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        offset = 0
        for tile in tiles:
            image.paste(tile.convert("RGBA"), (0, offset))
            offset += tile.height
        return image


BASE_CAPTURES: dict[str, BaseCapture] = {
    capture.name: capture for capture in (ViewportCapture(), ViewportPastingCapture())
}


def get_base_capture(name: str) -> BaseCapture:
    capture = BASE_CAPTURES.get(name)
    if capture is None:
        raise ConfigurationError(
            f"Unable to find the strategy with the name: {name}", context={"strategy": name}
        )
    return capture


class CaptureStrategy:
    """Callable pipeline: ``strategy(tiles) -> image``."""

    def __init__(
        self,
        base_capture: BaseCapture,
        transforms: list[TileTransform],
        top_adjustment: int = 0,
        dpr: float = 1.0,
        header_cut: int = 0,
        footer_cut: int = 0,
    ):
        self.base_capture = base_capture
        self.transforms = tuple(transforms)
        self.top_adjustment = top_adjustment
        self.dpr = dpr
        self.header_cut = header_cut
        self.footer_cut = footer_cut

    @property
    def name(self) -> str:
        return self.base_capture.name

    @property
    def full_page(self) -> bool:
        return self.base_capture.full_page

    def __call__(self, tiles: list[Image.Image]) -> Image.Image:
        if not tiles:
            raise ValueError("No tiles captured")
        prepared = []
        for tile in tiles:
            for transform in self.transforms:
                tile = transform.apply(tile)
            prepared.append(tile)
        return self.base_capture.assemble(prepared)

    def scale_rectangle(self, rect: Rectangle) -> Rectangle:
        for transform in self.transforms:
            rect = transform.map_rectangle(rect)
        return rect

    def __repr__(self) -> str:
        return f"CaptureStrategy({self.name}, transforms={list(self.transforms)})"


def build_strategy(base_capture: BaseCapture, dpr: float, header_cut: int, footer_cut: int) -> CaptureStrategy:
    """Compose scaling and the optional cut around ``base_capture``.

    Raises ConfigurationError for a non-positive ``dpr``.
    """
    transforms: list[TileTransform] = [ScalingTransform(dpr)]
    top_adjustment = 0
    if header_cut + footer_cut > 0:
        transforms.append(CuttingTransform(header_cut, footer_cut))
        top_adjustment = header_cut
    return CaptureStrategy(
        base_capture, transforms, top_adjustment, dpr=dpr, header_cut=header_cut, footer_cut=footer_cut
    )


class CaptureStrategyComposer:
    """Builds capture strategies and caches them per screenshot configuration."""

    def __init__(self) -> None:
        self._cache: dict[ScreenshotParameters, CaptureStrategy] = {}
        self._lock = threading.Lock()

    def for_parameters(self, params: ScreenshotParameters) -> CaptureStrategy:
        with self._lock:
            strategy = self._cache.get(params)
            if strategy is None:
                strategy = build_strategy(
                    get_base_capture(params.strategy),
                    params.device_pixel_ratio,
                    params.header_cut,
                    params.footer_cut,
                )
                self._cache[params] = strategy
                logger.debug("Built %r for %s", strategy, params)
            return strategy

    def cached_parameters(self) -> list[ScreenshotParameters]:
        """Cached configurations in the order they were first requested."""
        with self._lock:
            return list(self._cache)
