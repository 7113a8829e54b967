"""Configuration models for visual checks."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DIFF_COLOR = (238, 111, 238)
DEFAULT_PIXEL_TOLERANCE = 10


class ScreenshotParameters(BaseModel):
    """Capture configuration. Frozen so it can key the strategy cache."""

    model_config = ConfigDict(frozen=True)

    device_pixel_ratio: float = Field(default=1.0, ge=0)
    header_cut: int = Field(default=0, ge=0)
    footer_cut: int = Field(default=0, ge=0)
    strategy: str = "VIEWPORT_PASTING"

    @property
    def has_cut(self) -> bool:
        return self.header_cut + self.footer_cut > 0


class VisualConfig(BaseModel):
    # Storage
    baselines_dir: str = "./baselines"
    debug_dir: Optional[str] = None

    # Capture
    screenshot: ScreenshotParameters = Field(default_factory=ScreenshotParameters)

    # Comparison
    acceptable_diff_percentage: int = Field(default=0, ge=0, le=100)
    required_diff_percentage: int = Field(default=0, ge=0, le=100)
    pixel_tolerance: int = Field(default=DEFAULT_PIXEL_TOLERANCE, ge=0, le=255)
    diff_color: tuple[int, int, int] = DEFAULT_DIFF_COLOR

    # Reporting
    report_formats: list[str] = Field(default_factory=lambda: ["html", "json"])
    report_output_dir: str = "./visual-reports"

    @field_validator("baselines_dir", "debug_dir", "report_output_dir", mode="before")
    @classmethod
    def resolve_env_dir(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v

    @field_validator("diff_color")
    @classmethod
    def check_diff_color(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        if any(c < 0 or c > 255 for c in v):
            raise ValueError(f"diff_color channels must be 0-255, got {v}")
        return v

    @field_validator("report_formats")
    @classmethod
    def check_report_formats(cls, v: list[str]) -> list[str]:
        unknown = [f for f in v if f not in ("html", "json")]
        if unknown:
            raise ValueError(f"Unsupported report format(s): {', '.join(unknown)}")
        return v

    @classmethod
    def load(cls, path: str | Path) -> "VisualConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
