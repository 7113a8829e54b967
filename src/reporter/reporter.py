"""Report sink: publishes visual check results and writes run reports."""

from __future__ import annotations

import logging
import re
import time
import uuid
from pathlib import Path

from PIL import Image

from src.engine.actions import resolve_verdict
from src.models.config import VisualConfig
from src.models.test_result import AssertionResult, CheckRecord, RunResult
from src.models.visual_check import VisualCheckResult

from .html_report import generate_html_report
from .json_report import generate_json_report

logger = logging.getLogger(__name__)

_UNSAFE_NAME = re.compile(r"[^\w.-]+")


class Reporter:
    """Collects published results and their image artifacts for one run."""

    def __init__(self, config: VisualConfig, output_dir: Path | None = None, run_id: str | None = None):
        self.config = config
        self.output_dir = output_dir or Path(config.report_output_dir)
        self.run_result = RunResult(
            run_id=run_id or f"run_{time.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:6]}",
            started_at=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        )

    @property
    def artifacts_dir(self) -> Path:
        return self.output_dir / self.run_result.run_id

    def publish(self, result: VisualCheckResult) -> None:
        """Save the result's images and record it for the run report."""
        index = len(self.run_result.checks) + 1
        safe_name = _UNSAFE_NAME.sub("_", result.baseline_name)
        prefix = f"{index:03d}_{safe_name}"
        record = CheckRecord(
            baseline_name=result.baseline_name,
            action_type=result.action_type.value,
            baseline_found=result.baseline_found,
            diff_percentage=result.diff_percentage,
            passed=result.passed,
            verdict=resolve_verdict(result),
            message=result.message,
            error=result.error,
            checkpoint_path=self._save_image(result.checkpoint, f"{prefix}_checkpoint.png"),
            baseline_path=self._save_image(result.baseline, f"{prefix}_baseline.png"),
            diff_path=self._save_image(result.diff, f"{prefix}_diff.png"),
        )
        self.run_result.checks.append(record)
        logger.debug("Published visual check '%s' (%s)", result.baseline_name, record.action_type)

    def _save_image(self, image: Image.Image | None, name: str) -> str | None:
        if image is None:
            return None
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)
        path = self.artifacts_dir / name
        image.save(path, format="PNG")
        return str(path)

    def generate_reports(self, assertions: list[AssertionResult] | None = None) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.run_result.completed_at = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        if assertions is not None:
            self.run_result.assertions = list(assertions)
        generated = {}

        if "html" in self.config.report_formats:
            path = self.output_dir / f"report_{self.run_result.run_id}.html"
            generate_html_report(self.run_result, path)
            generated["html"] = str(path)
            logger.info("HTML report: %s", path)

        if "json" in self.config.report_formats:
            path = self.output_dir / f"report_{self.run_result.run_id}.json"
            generate_json_report(self.run_result, path)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        return generated
