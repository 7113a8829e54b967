"""Baseline stores: keep reference images keyed by baseline name."""

from __future__ import annotations

import hashlib
import json
import logging
import re
import threading
import time
from pathlib import Path

from PIL import Image

from src.models.visual_baseline import BaselineEntry

logger = logging.getLogger(__name__)

_UNSAFE_NAME = re.compile(r"[^\w.-]+")


class FileBaselineStore:
    """Stores each baseline as ``<name>.png`` plus a ``<name>.json`` metadata entry.

    Every key owns its own files, so reads and writes for distinct keys never
    touch shared state.
    """

    def __init__(self, baselines_dir: Path):
        self.baselines_dir = baselines_dir

    def _file_stem(self, key: str) -> str:
        stem = _UNSAFE_NAME.sub("_", key).strip("._")
        if not stem:
            raise ValueError(f"Invalid baseline name: '{key}'")
        return stem

    def _image_path(self, key: str) -> Path:
        return self.baselines_dir / f"{self._file_stem(key)}.png"

    def _entry_path(self, key: str) -> Path:
        return self.baselines_dir / f"{self._file_stem(key)}.json"

    def get_entry(self, key: str) -> BaselineEntry | None:
        """Load the metadata entry for a baseline, if present and readable."""
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            with open(path) as f:
                return BaselineEntry(**json.load(f))
        except Exception as e:
            logger.warning("Failed to load baseline entry %s: %s", path, e)
            return None

    def load(self, key: str) -> Image.Image | None:
        """Load a baseline image, or None if it was never established."""
        path = self._image_path(key)
        if not path.exists():
            logger.debug("No baseline image for '%s' at %s", key, path)
            return None
        with Image.open(path) as img:
            img.load()
            image = img.convert("RGBA")
        entry = self.get_entry(key)
        if entry is not None:
            image_hash = hashlib.sha256(path.read_bytes()).hexdigest()
            if image_hash != entry.image_hash:
                logger.warning("Baseline image for '%s' changed outside the store (hash mismatch)", key)
        return image

    def save(self, key: str, image: Image.Image) -> None:
        """Write (overwrite) the baseline image and its metadata."""
        dest = self._image_path(key)
        dest.parent.mkdir(parents=True, exist_ok=True)
        image.save(dest, format="PNG")

        entry = BaselineEntry(
            baseline_name=key,
            width=image.width,
            height=image.height,
            image_path=str(dest.relative_to(self.baselines_dir)),
            captured_at=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            image_hash=hashlib.sha256(dest.read_bytes()).hexdigest(),
        )
        with open(self._entry_path(key), "w") as f:
            json.dump(entry.model_dump(), f, indent=2)
        logger.info("Stored baseline '%s' (%dx%d)", key, image.width, image.height)

    def list_entries(self) -> list[BaselineEntry]:
        """All readable baseline entries, sorted by name."""
        if not self.baselines_dir.exists():
            return []
        entries = []
        for path in sorted(self.baselines_dir.glob("*.json")):
            try:
                with open(path) as f:
                    entries.append(BaselineEntry(**json.load(f)))
            except Exception as e:
                logger.warning("Skipping unreadable baseline entry %s: %s", path, e)
        return sorted(entries, key=lambda e: e.baseline_name)


class InMemoryBaselineStore:
    """Baseline store kept in process memory."""

    def __init__(self) -> None:
        self._images: dict[str, Image.Image] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> Image.Image | None:
        with self._lock:
            image = self._images.get(key)
        return image.copy() if image is not None else None

    def save(self, key: str, image: Image.Image) -> None:
        with self._lock:
            self._images[key] = image.copy()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._images
