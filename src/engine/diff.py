"""Pixel diff engine with percentage-of-area thresholds."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from PIL import Image, ImageChops

from src.errors import ConfigurationError, DimensionMismatchError
from src.models.config import DEFAULT_DIFF_COLOR, DEFAULT_PIXEL_TOLERANCE

logger = logging.getLogger(__name__)

ONE_HUNDRED = 100


@dataclass(frozen=True)
class DiffMarkupPolicy:
    diff_size_trigger: int
    diff_color: tuple[int, int, int] = DEFAULT_DIFF_COLOR

    @classmethod
    def create(
        cls,
        image_height: int,
        image_width: int,
        diff_percentage: int,
        diff_color: tuple[int, int, int] = DEFAULT_DIFF_COLOR,
    ) -> DiffMarkupPolicy:
        if isinstance(diff_percentage, bool) or not isinstance(diff_percentage, int):
            raise ConfigurationError(f"Diff percentage must be an integer, got {diff_percentage!r}")
        if diff_percentage < 0 or diff_percentage > ONE_HUNDRED:
            raise ConfigurationError(f"Diff percentage must be between 0 and 100, got {diff_percentage}")
        trigger = image_height * image_width * diff_percentage // ONE_HUNDRED
        return cls(diff_size_trigger=trigger, diff_color=diff_color)

    def is_different(self, diff_pixels: int) -> bool:
        return diff_pixels > self.diff_size_trigger


@dataclass(frozen=True)
class DiffResult:
    diff_pixels: int
    diff_percentage: float
    markup: Image.Image
    passed: bool  # True when the images classify as "same"


class ImageDiffer:
    """Counts pixels whose channels differ by more than ``pixel_tolerance``."""

    def __init__(
        self,
        pixel_tolerance: int = DEFAULT_PIXEL_TOLERANCE,
        diff_color: tuple[int, int, int] = DEFAULT_DIFF_COLOR,
    ):
        self.pixel_tolerance = pixel_tolerance
        self.diff_color = diff_color

    def diff(self, candidate: Image.Image, baseline: Image.Image, threshold_percentage: int) -> DiffResult:
        if candidate.size != baseline.size:
            raise DimensionMismatchError(candidate.size, baseline.size)

        width, height = candidate.size
        policy = DiffMarkupPolicy.create(height, width, threshold_percentage, self.diff_color)

        candidate_rgba = candidate.convert("RGBA")
        mask = self.diff_mask(candidate_rgba, baseline.convert("RGBA"))
        diff_pixels = mask.histogram()[255]
        total = width * height
        diff_percentage = diff_pixels * ONE_HUNDRED / total if total else 0.0

        markup = candidate_rgba.copy()
        if diff_pixels:
            markup.paste((*policy.diff_color, 255), (0, 0, width, height), mask)

        passed = not policy.is_different(diff_pixels)
        logger.debug(
            "Diff: %d/%d pixels (%.2f%%), trigger %d -> %s",
            diff_pixels, total, diff_percentage, policy.diff_size_trigger, "same" if passed else "different",
        )
        return DiffResult(
            diff_pixels=diff_pixels,
            diff_percentage=diff_percentage,
            markup=markup,
            passed=passed,
        )

    def diff_mask(self, a: Image.Image, b: Image.Image) -> Image.Image:
        """Return an ``L`` mask: 255 where any channel differs beyond tolerance."""
        tolerance = self.pixel_tolerance
        difference = ImageChops.difference(a, b)
        mask = None
        for band in difference.split():
            band_mask = band.point(lambda v: 255 if v > tolerance else 0)
            mask = band_mask if mask is None else ImageChops.lighter(mask, band_mask)
        return mask
