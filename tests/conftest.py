"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import Mock

import pytest
from PIL import Image

from src.baseline.store import InMemoryBaselineStore
from src.engine.visual_testing_engine import VisualTestingEngine
from src.models.config import ScreenshotParameters, VisualConfig
from src.models.geometry import Rectangle
from src.orchestrator import StaticContextProvider, VisualCheckOrchestrator
from src.reporter.soft_assert import SoftAssert

from tests.images import TileProvider, solid


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def screenshot_parameters() -> ScreenshotParameters:
    return ScreenshotParameters(device_pixel_ratio=1.0, strategy="VIEWPORT")


@pytest.fixture
def visual_config(screenshot_parameters: ScreenshotParameters, tmp_path: Path) -> VisualConfig:
    return VisualConfig(
        baselines_dir=str(tmp_path / "baselines"),
        report_output_dir=str(tmp_path / "reports"),
        screenshot=screenshot_parameters,
    )


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def white_image() -> Image.Image:
    return solid(100, 100)


@pytest.fixture
def small_image() -> Image.Image:
    return solid(10, 10)


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def baseline_store() -> InMemoryBaselineStore:
    return InMemoryBaselineStore()


@pytest.fixture
def tile_provider(white_image: Image.Image) -> TileProvider:
    return TileProvider([white_image])


@pytest.fixture
def locator_resolver() -> Mock:
    resolver = Mock()
    resolver.resolve = Mock(return_value={Rectangle(x=10, y=10, width=20, height=20)})
    return resolver


@pytest.fixture
def engine(tile_provider, baseline_store, visual_config, locator_resolver) -> VisualTestingEngine:
    return VisualTestingEngine(
        tile_provider, baseline_store, visual_config, locator_resolver=locator_resolver
    )


@pytest.fixture
def soft_assert() -> SoftAssert:
    return SoftAssert()


@pytest.fixture
def report_sink() -> Mock:
    return Mock()


@pytest.fixture
def orchestrator(engine, soft_assert, report_sink) -> VisualCheckOrchestrator:
    return VisualCheckOrchestrator(engine, StaticContextProvider("page"), soft_assert, report_sink)
