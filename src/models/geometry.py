"""Geometry primitives shared by the capture, crop and diff stages."""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Rectangle(BaseModel):
    """Axis-aligned rectangle in page-pixel coordinates."""

    model_config = ConfigDict(frozen=True)

    x: int = Field(default=0, ge=0)
    y: int = Field(default=0, ge=0)
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def sort_key(self) -> tuple[int, int, int, int]:
        return (self.y, self.x, self.height, self.width)

    def scale(self, factor: float) -> Rectangle:
        """Scale logical coordinates to physical ones.

        The origin is floored and the far edge is ceiled so the scaled
        rectangle always covers every physical pixel of the logical one.
        """
        left = math.floor(self.x * factor)
        top = math.floor(self.y * factor)
        right = math.ceil((self.x + self.width) * factor)
        bottom = math.ceil((self.y + self.height) * factor)
        return Rectangle(x=left, y=top, width=right - left, height=bottom - top)

    def translated_box(self, dx: int, dy: int) -> tuple[int, int, int, int]:
        """Return ``(left, top, right, bottom)`` shifted by ``dx``/``dy``.

        The result may have negative coordinates; use :func:`clip_box` before
        touching pixels.
        """
        left = self.x + dx
        top = self.y + dy
        return (left, top, left + self.width, top + self.height)

    @classmethod
    def parse(cls, text: str) -> Rectangle:
        """Parse ``"x,y,width,height"``."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Expected 'x,y,width,height', got '{text}'")
        x, y, width, height = (int(p) for p in parts)
        return cls(x=x, y=y, width=width, height=height)


def clip_box(
    box: tuple[int, int, int, int], width: int, height: int
) -> tuple[int, int, int, int] | None:
    left, top, right, bottom = box
    left = max(left, 0)
    top = max(top, 0)
    right = min(right, width)
    bottom = min(bottom, height)
    if right <= left or bottom <= top:
        return None
    return (left, top, right, bottom)


class Locator(BaseModel):
    """Element lookup handed to a locator resolver."""

    model_config = ConfigDict(frozen=True)

    type: Literal["css", "xpath"] = "css"
    value: str

    def to_selector(self) -> str:
        if self.type == "xpath":
            return f"xpath={self.value}"
        return self.value

    @classmethod
    def parse(cls, text: str) -> Locator:
        """Parse ``"css(...)"``/``"xpath(...)"`` or a bare CSS selector."""
        text = text.strip()
        for prefix in ("css", "xpath"):
            if text.startswith(f"{prefix}(") and text.endswith(")"):
                return cls(type=prefix, value=text[len(prefix) + 1:-1])
        return cls(type="css", value=text)
