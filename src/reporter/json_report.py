"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from src.models.test_result import RunResult


def generate_json_report(run_result: RunResult, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    report = run_result.model_dump()
    report["summary"] = {
        "checks": len(run_result.checks),
        "passed": run_result.passed,
        "failed": run_result.failed,
        "missing_baselines": [c.baseline_name for c in run_result.checks if not c.baseline_found
                              and c.action_type != "ESTABLISH"],
    }

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)
