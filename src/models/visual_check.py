"""Visual check request and result data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from src.models.config import ScreenshotParameters
from src.models.geometry import Locator, Rectangle


class IgnoreStrategy(str, Enum):
    ELEMENT = "ELEMENT"
    AREA = "AREA"

    @classmethod
    def ordered(cls) -> list[IgnoreStrategy]:
        """Processing order: element ignores are always applied before areas."""
        return [cls.ELEMENT, cls.AREA]


class VisualActionType(str, Enum):
    ESTABLISH = "ESTABLISH"
    COMPARE_AGAINST = "COMPARE_AGAINST"
    CHECK_INEQUALITY_AGAINST = "CHECK_INEQUALITY_AGAINST"


IgnoreTarget = Union[Locator, Rectangle]


class VisualCheck(BaseModel):
    """A single comparison request, discarded once the check completes."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    baseline_name: str
    action: VisualActionType
    acceptable_diff_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    required_diff_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    elements_to_ignore: dict[IgnoreStrategy, set[IgnoreTarget]] = Field(default_factory=dict)
    screenshot_parameters: Optional[ScreenshotParameters] = None
    search_context: Any = None


@dataclass(frozen=True)
class VisualCheckResult:
    baseline_name: str
    action_type: VisualActionType
    baseline_found: bool = True
    diff_percentage: float | None = None
    passed: bool | None = None  # None for ESTABLISH
    diff: Image.Image | None = None
    baseline: Image.Image | None = None
    checkpoint: Image.Image | None = None
    message: str = ""
    error: str | None = None  # set when the images could not be compared
