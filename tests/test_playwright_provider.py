"""Tests for the Playwright-backed collaborators."""

import io
from unittest.mock import Mock

import pytest
from PIL import Image
from playwright.sync_api import Page

from src.baseline.store import InMemoryBaselineStore
from src.capture.playwright_provider import (
    PlaywrightCaptureProvider,
    PlaywrightContextProvider,
    PlaywrightLocatorResolver,
    _drop_rows,
)
from src.capture.strategy import ViewportCapture, ViewportPastingCapture, build_strategy
from src.engine.visual_testing_engine import VisualTestingEngine
from src.errors import CollaboratorError
from src.models.geometry import Locator, Rectangle
from src.models.visual_check import IgnoreStrategy, VisualActionType, VisualCheck

from tests.images import TRANSPARENT, WHITE, solid


def png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def gradient_tile(scroll_y: int, width: int = 4, height: int = 100) -> Image.Image:
    """Viewport tile whose row ``i`` is coloured by its page row ``scroll_y + i``."""
    tile = Image.new("RGBA", (width, height))
    for i in range(height):
        v = scroll_y + i
        tile.paste((v, v, v, 255), (0, i, width, i + 1))
    return tile


def fake_page(viewport_height=100, page_height=250) -> Mock:
    """Page mock that scrolls like a browser, clamping at the bottom."""
    page = Mock(spec=Page)
    state = {"y": 0}
    max_scroll = max(page_height - viewport_height, 0)

    def evaluate(expression, arg=None):
        if expression == "window.innerHeight":
            return viewport_height
        if expression.startswith("Math.max"):
            return page_height
        if "scrollTo" in expression:
            state["y"] = min(arg, max_scroll)
            return None
        if expression == "window.scrollY":
            return state["y"]
        raise AssertionError(f"unexpected expression {expression}")

    page.evaluate.side_effect = evaluate
    page.screenshot.side_effect = lambda full_page=False: png_bytes(gradient_tile(state["y"]))
    return page


class TestPlaywrightCaptureProvider:
    """Tests for PlaywrightCaptureProvider.capture_raw_tiles."""

    def test_viewport_takes_single_shot(self):
        page = Mock(spec=Page)
        page.screenshot.return_value = png_bytes(solid(30, 20))
        tiles = PlaywrightCaptureProvider().capture_raw_tiles(page, build_strategy(ViewportCapture(), 1.0, 0, 0))
        assert len(tiles) == 1
        assert tiles[0].size == (30, 20)
        page.screenshot.assert_called_once_with(full_page=False)

    def test_element_context_uses_element_screenshot(self):
        element = Mock()
        element.screenshot.return_value = png_bytes(solid(8, 6))
        tiles = PlaywrightCaptureProvider().capture_raw_tiles(
            element, build_strategy(ViewportPastingCapture(), 1.0, 0, 0)
        )
        assert [t.size for t in tiles] == [(8, 6)]

    def test_scrolling_capture_stitches_without_overlap(self):
        page = fake_page()
        strategy = build_strategy(ViewportPastingCapture(), 1.0, 10, 0)
        tiles = PlaywrightCaptureProvider().capture_raw_tiles(page, strategy)
        assert [t.height for t in tiles] == [100, 100, 70]

        image = strategy(tiles)
        assert image.size == (4, 240)
        # Row r of the stitched image is page row r + header
        assert [image.getpixel((0, r))[0] for r in range(240)] == list(range(10, 250))

    def test_short_page_is_one_tile(self):
        page = fake_page(viewport_height=100, page_height=80)
        tiles = PlaywrightCaptureProvider().capture_raw_tiles(
            page, build_strategy(ViewportPastingCapture(), 1.0, 0, 0)
        )
        assert len(tiles) == 1

    def test_cut_covering_viewport_fails(self):
        page = fake_page(viewport_height=100)
        strategy = build_strategy(ViewportPastingCapture(), 1.0, 60, 40)
        with pytest.raises(CollaboratorError, match="cover the whole viewport"):
            PlaywrightCaptureProvider().capture_raw_tiles(page, strategy)

    def test_viewport_origin_is_physical_scroll(self):
        page = Mock(spec=Page)
        page.evaluate.return_value = 300
        origin = PlaywrightCaptureProvider().capture_origin(page, build_strategy(ViewportCapture(), 2.0, 0, 0))
        page.evaluate.assert_called_once_with("window.scrollY")
        assert origin == 600

    def test_scrolling_and_element_origin_is_top(self):
        provider = PlaywrightCaptureProvider()
        page = fake_page()
        assert provider.capture_origin(page, build_strategy(ViewportPastingCapture(), 1.0, 0, 0)) == 0
        assert provider.capture_origin(Mock(), build_strategy(ViewportCapture(), 1.0, 0, 0)) == 0
        page.evaluate.assert_not_called()


class TestDropRows:
    """Tests for the overlap trimming helper."""

    def test_keeps_header(self):
        tile = gradient_tile(0, height=10)
        result = _drop_rows(tile, 2, 3)
        assert result.height == 7
        assert [result.getpixel((0, r))[0] for r in range(7)] == [0, 1, 5, 6, 7, 8, 9]

    def test_zero_count_is_noop(self):
        tile = gradient_tile(0, height=10)
        assert _drop_rows(tile, 2, 0) is tile


class TestPlaywrightLocatorResolver:
    """Tests for PlaywrightLocatorResolver.resolve."""

    def test_bounds_include_scroll_offset(self):
        page = Mock(spec=Page)
        page.evaluate.return_value = [0, 50]
        visible = Mock()
        visible.bounding_box.return_value = {"x": 10.5, "y": -60, "width": 20, "height": 30}
        hidden = Mock()
        hidden.bounding_box.return_value = None
        page.locator.return_value.all.return_value = [visible, hidden]

        rects = PlaywrightLocatorResolver(page).resolve(Locator(type="xpath", value="//aside"))

        page.locator.assert_called_once_with("xpath=//aside")
        assert rects == {Rectangle(x=10, y=0, width=21, height=20)}

    def test_no_matches(self):
        page = Mock(spec=Page)
        page.evaluate.return_value = [0, 0]
        page.locator.return_value.all.return_value = []
        assert PlaywrightLocatorResolver(page).resolve(Locator(value="#none")) == set()


class TestPlaywrightContextProvider:
    """Tests for PlaywrightContextProvider."""

    def test_open_page(self):
        page = Mock(spec=Page)
        page.is_closed.return_value = False
        assert PlaywrightContextProvider(page).get_search_context() is page

    def test_closed_page(self):
        page = Mock(spec=Page)
        page.is_closed.return_value = True
        assert PlaywrightContextProvider(page).get_search_context() is None


class TestScrolledViewportCheck:
    """Element ignores on a viewport shot of a scrolled page."""

    def test_ignored_element_is_masked_in_viewport_rows(self, visual_config):
        page = Mock(spec=Page)

        def evaluate(expression):
            if expression == "window.scrollY":
                return 300
            if expression == "[window.scrollX, window.scrollY]":
                return [0, 300]
            raise AssertionError(f"unexpected expression {expression}")

        page.evaluate.side_effect = evaluate
        page.screenshot.return_value = png_bytes(solid(100, 100))
        banner = Mock()
        banner.bounding_box.return_value = {"x": 0, "y": 10, "width": 100, "height": 5}
        page.locator.return_value.all.return_value = [banner]

        engine = VisualTestingEngine(
            PlaywrightCaptureProvider(),
            InMemoryBaselineStore(),
            visual_config,
            locator_resolver=PlaywrightLocatorResolver(page),
        )
        check = VisualCheck(
            baseline_name="scrolled",
            action=VisualActionType.ESTABLISH,
            elements_to_ignore={IgnoreStrategy.ELEMENT: {Locator(value="#banner")}},
        )
        check.search_context = page
        result = engine.execute(check)

        assert result.checkpoint.getpixel((50, 10)) == TRANSPARENT
        assert result.checkpoint.getpixel((50, 14)) == TRANSPARENT
        assert result.checkpoint.getpixel((50, 9)) == WHITE
        assert result.checkpoint.getpixel((50, 15)) == WHITE
