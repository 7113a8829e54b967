"""Visual baseline metadata."""

from __future__ import annotations

from pydantic import BaseModel


class BaselineEntry(BaseModel):
    baseline_name: str
    width: int
    height: int
    image_path: str  # relative path from baselines_dir to the PNG
    captured_at: str  # ISO timestamp
    image_hash: str  # SHA-256 hex digest of the PNG bytes
