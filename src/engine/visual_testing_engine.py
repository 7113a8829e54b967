"""Visual testing engine: captures checkpoints and manages the baseline lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from PIL import Image

from src.capture.cropper import RegionCropper
from src.capture.interfaces import BaselineStore, CaptureProvider, LocatorResolver
from src.capture.strategy import CaptureStrategy, CaptureStrategyComposer
from src.engine.actions import get_action
from src.engine.diff import ImageDiffer
from src.errors import CollaboratorError, DimensionMismatchError, VisualCheckError
from src.models.config import VisualConfig
from src.models.geometry import Locator, Rectangle
from src.models.visual_check import (
    IgnoreStrategy,
    IgnoreTarget,
    VisualCheck,
    VisualCheckResult,
)

logger = logging.getLogger(__name__)


class Checkpoint:
    """A captured, masked image together with the ignores applied to it."""

    def __init__(self, image: Image.Image, ignores: dict[IgnoreStrategy, set[Rectangle]], top_adjustment: int):
        self.image = image
        self.ignores = ignores
        self.top_adjustment = top_adjustment


class VisualTestingEngine:
    """Runs a single visual check synchronously: capture, crop, then store or diff."""

    def __init__(
        self,
        capture_provider: CaptureProvider,
        baseline_store: BaselineStore,
        config: VisualConfig | None = None,
        locator_resolver: LocatorResolver | None = None,
        composer: CaptureStrategyComposer | None = None,
        cropper: RegionCropper | None = None,
        differ: ImageDiffer | None = None,
    ):
        self.config = config or VisualConfig()
        self.capture_provider = capture_provider
        self.baseline_store = baseline_store
        self.locator_resolver = locator_resolver
        self.composer = composer or CaptureStrategyComposer()
        self.cropper = cropper or RegionCropper()
        self.differ = differ or ImageDiffer(self.config.pixel_tolerance, self.config.diff_color)
        # Baselines are masked without debug snapshots
        self._baseline_cropper = RegionCropper()

    def execute(self, check: VisualCheck) -> VisualCheckResult:
        if not get_action(check.action).requires_baseline:
            return self.establish(check)
        return self.compare_against(check)

    def establish(self, check: VisualCheck) -> VisualCheckResult:
        """Capture and store the checkpoint as the new baseline (overwrites)."""
        checkpoint = self._take_checkpoint(check)
        try:
            previous = self._load_baseline(check.baseline_name)
        except CollaboratorError as e:
            logger.warning("Replacing unreadable baseline '%s': %s", check.baseline_name, e.message)
            previous = None
        try:
            self.baseline_store.save(check.baseline_name, checkpoint.image)
        except Exception as e:
            raise CollaboratorError(f"Unable to save baseline '{check.baseline_name}': {e}", e) from e
        logger.info("Baseline '%s' established (%dx%d)", check.baseline_name, *checkpoint.image.size)
        return VisualCheckResult(
            baseline_name=check.baseline_name,
            action_type=check.action,
            baseline_found=previous is not None,
            baseline=previous,
            checkpoint=checkpoint.image,
            message="Baseline replaced" if previous is not None else "Baseline created",
        )

    def compare_against(self, check: VisualCheck) -> VisualCheckResult:
        """Diff the checkpoint against the stored baseline.

        A missing baseline and a size mismatch are reported in the result,
        not raised.
        """
        action = get_action(check.action)
        checkpoint = self._take_checkpoint(check)
        baseline = self._load_baseline(check.baseline_name)
        if baseline is None:
            logger.warning("Baseline '%s' not found", check.baseline_name)
            return VisualCheckResult(
                baseline_name=check.baseline_name,
                action_type=check.action,
                baseline_found=False,
                checkpoint=checkpoint.image,
                message=f"Unable to find baseline with name: {check.baseline_name}",
            )

        baseline = self._baseline_cropper.crop(baseline, checkpoint.ignores, checkpoint.top_adjustment)
        threshold = action.threshold(check, self.config)
        try:
            diff = self.differ.diff(checkpoint.image, baseline, threshold)
        except DimensionMismatchError as e:
            logger.warning("Baseline '%s' is not valid for the current page: %s", check.baseline_name, e)
            return VisualCheckResult(
                baseline_name=check.baseline_name,
                action_type=check.action,
                baseline_found=True,
                baseline=baseline,
                checkpoint=checkpoint.image,
                error=e.message,
            )

        logger.info(
            "Visual check '%s' (%s): %.2f%% differs, threshold %d%%",
            check.baseline_name, check.action.value, diff.diff_percentage, threshold,
        )
        return VisualCheckResult(
            baseline_name=check.baseline_name,
            action_type=check.action,
            baseline_found=True,
            diff_percentage=diff.diff_percentage,
            passed=diff.passed,
            diff=diff.markup,
            baseline=baseline,
            checkpoint=checkpoint.image,
        )

    def _take_checkpoint(self, check: VisualCheck) -> Checkpoint:
        params = check.screenshot_parameters or self.config.screenshot
        strategy = self.composer.for_parameters(params)
        try:
            tiles = self.capture_provider.capture_raw_tiles(check.search_context, strategy)
            origin = self.capture_provider.capture_origin(check.search_context, strategy)
        except VisualCheckError:
            raise
        except Exception as e:
            raise CollaboratorError(f"Unable to capture screenshot: {e}", e) from e
        if not tiles:
            raise CollaboratorError("Capture provider returned no tiles")
        image = strategy(tiles)
        ignores = self._resolve_ignores(check.elements_to_ignore, strategy)
        # Image row 0 is page row origin + header cut
        top_adjustment = origin + strategy.top_adjustment
        image = self.cropper.crop(image, ignores, top_adjustment)
        return Checkpoint(image, ignores, top_adjustment)

    def _resolve_ignores(
        self, elements_to_ignore: dict[IgnoreStrategy, set[IgnoreTarget]], strategy: CaptureStrategy
    ) -> dict[IgnoreStrategy, set[Rectangle]]:
        resolved: dict[IgnoreStrategy, set[Rectangle]] = {}
        for ignore_strategy in IgnoreStrategy.ordered():
            targets = elements_to_ignore.get(ignore_strategy)
            if targets:
                resolved[ignore_strategy] = set(self._to_rectangles(targets, strategy))
        return resolved

    def _to_rectangles(self, targets: Iterable[IgnoreTarget], strategy: CaptureStrategy) -> Iterable[Rectangle]:
        for target in targets:
            if isinstance(target, Rectangle):
                yield target
                continue
            yield from (strategy.scale_rectangle(r) for r in self._resolve_locator(target))

    def _resolve_locator(self, locator: Locator) -> set[Rectangle]:
        if self.locator_resolver is None:
            raise CollaboratorError(f"No locator resolver configured to find {locator.to_selector()}")
        try:
            rects = self.locator_resolver.resolve(locator)
        except VisualCheckError:
            raise
        except Exception as e:
            raise CollaboratorError(f"Unable to resolve {locator.to_selector()}: {e}", e) from e
        logger.debug("Resolved %s to %d element(s)", locator.to_selector(), len(rects))
        return rects

    def _load_baseline(self, name: str) -> Image.Image | None:
        try:
            return self.baseline_store.load(name)
        except Exception as e:
            raise CollaboratorError(f"Unable to load baseline '{name}': {e}", e) from e
