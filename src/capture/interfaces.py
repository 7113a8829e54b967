"""Narrow interfaces to the collaborators a visual check depends on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Protocol

from PIL import Image

from src.models.geometry import Locator, Rectangle

if TYPE_CHECKING:
    from src.capture.strategy import CaptureStrategy
    from src.models.visual_check import VisualCheckResult


class CaptureProvider(Protocol):
    def capture_raw_tiles(self, context: Any, strategy: CaptureStrategy) -> list[Image.Image]:
        """Return the raw tiles for ``context``, top to bottom."""
        ...

    def capture_origin(self, context: Any, strategy: CaptureStrategy) -> int:
        """Page row, in physical pixels, of the first raw tile's top row."""
        ...


class LocatorResolver(Protocol):
    def resolve(self, locator: Locator) -> set[Rectangle]:
        """Return the bounds of every element matching ``locator`` in logical pixels."""
        ...


class BaselineStore(Protocol):
    def load(self, key: str) -> Optional[Image.Image]:
        ...

    def save(self, key: str, image: Image.Image) -> None:
        ...


class DebugSink(Protocol):
    def emit(self, label: str, image: Image.Image) -> None:
        ...


class ReportSink(Protocol):
    def publish(self, result: VisualCheckResult) -> None:
        ...


class AssertionSink(Protocol):
    def assert_true(self, description: str, condition: bool) -> bool:
        ...

    def record_failed_assertion(self, failure: str | Exception) -> None:
        ...


class ContextProvider(Protocol):
    def get_search_context(self) -> Any | None:
        """Return the page or element to capture, or None if nothing is open."""
        ...
