"""HTML report generator: produces a self-contained HTML report of visual checks."""

from __future__ import annotations

import base64
import html
import logging
from pathlib import Path

from src.models.test_result import CheckRecord, RunResult

logger = logging.getLogger(__name__)


def _embed_image(path: str | None) -> str:
    """Read an image file and return a base64 data URI, or empty string on failure."""
    if not path:
        return ""
    try:
        p = Path(path)
        if not p.exists() or p.stat().st_size == 0:
            return ""
        with open(p, "rb") as f:
            data = base64.b64encode(f.read()).decode()
        return f"data:image/png;base64,{data}"
    except Exception:
        return ""


def _status(check: CheckRecord) -> str:
    if check.action_type == "ESTABLISH":
        return "established"
    if not check.baseline_found:
        return "missing"
    if check.error:
        return "error"
    return "pass" if check.verdict else "fail"


def _build_check_card(check: CheckRecord) -> str:
    status = _status(check)
    border_color = {
        "pass": "#22c55e", "fail": "#ef4444", "missing": "#eab308", "error": "#f97316",
    }.get(status, "#6366f1")
    diff_text = f"{check.diff_percentage:.2f}% differs" if check.diff_percentage is not None else ""

    card = f'''
    <div class="check-card" style="border-left: 4px solid {border_color};">
      <div class="check-header">
        <span class="badge {status}">{status.upper()}</span>
        <strong>{html.escape(check.baseline_name)}</strong>
        <span class="check-meta">{check.action_type} {diff_text}</span>
      </div>
    '''
    if check.error:
        card += f'<div class="failure-banner"><strong>Error:</strong> {html.escape(check.error)}</div>'
    elif check.message:
        card += f'<div class="check-message">{html.escape(check.message)}</div>'

    images = ""
    for label, path in (("Checkpoint", check.checkpoint_path), ("Baseline", check.baseline_path),
                        ("Diff", check.diff_path)):
        uri = _embed_image(path)
        if uri:
            images += (f'<div class="screenshot-item"><img src="{uri}" alt="{label}">'
                       f'<div class="screenshot-label">{label}</div></div>')
    if images:
        card += f'<div class="screenshots-grid">{images}</div>'
    card += '</div>'
    return card


def generate_html_report(run_result: RunResult, output_path: Path) -> None:
    """Generate a self-contained HTML report with one card per visual check."""
    cards = "".join(_build_check_card(c) for c in run_result.checks)

    failures = ""
    failed = [a for a in run_result.assertions if not a.passed]
    if failed:
        items = "".join(f"<li>{html.escape(a.message or a.description)}</li>" for a in failed)
        failures = f'<div class="failures"><h2>&#9888; Failed assertions ({len(failed)})</h2><ul>{items}</ul></div>'

    report_html = f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Visual Report &mdash; {html.escape(run_result.run_id)}</title>
<style>
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #f8fafc; color: #1e293b; padding: 1.5rem; }}
  .meta {{ color: #64748b; margin-bottom: 1.5rem; font-size: 0.9rem; }}
  .summary {{ display: flex; gap: 0.8rem; margin-bottom: 1.5rem; }}
  .stat {{ background: white; border-radius: 8px; padding: 1rem; min-width: 120px; text-align: center; }}
  .stat .value {{ font-size: 1.8rem; font-weight: 700; }}
  .stat.pass .value {{ color: #22c55e; }}
  .stat.fail .value {{ color: #ef4444; }}
  .badge {{ display: inline-block; padding: 0.15rem 0.55rem; border-radius: 9999px; font-size: 0.7rem; font-weight: 600; }}
  .badge.pass {{ background: #dcfce7; color: #166534; }}
  .badge.fail {{ background: #fecaca; color: #991b1b; }}
  .badge.missing {{ background: #fef9c3; color: #854d0e; }}
  .badge.error {{ background: #fed7aa; color: #9a3412; }}
  .badge.established {{ background: #e0e7ff; color: #3730a3; }}
  .check-card {{ background: white; border-radius: 8px; margin-bottom: 0.8rem; padding: 0.8rem 1rem; }}
  .check-meta {{ font-size: 0.78rem; color: #64748b; }}
  .check-message {{ color: #64748b; font-size: 0.88rem; margin: 0.5rem 0; }}
  .failure-banner {{ background: #fef2f2; border: 1px solid #fecaca; color: #991b1b; border-radius: 6px; padding: 0.6rem 0.8rem; margin: 0.5rem 0; font-size: 0.88rem; }}
  .failures {{ background: #fef2f2; border-radius: 8px; padding: 1.2rem; margin-bottom: 1.5rem; border-left: 4px solid #ef4444; }}
  .screenshots-grid {{ display: grid; grid-template-columns: repeat(3, 1fr); gap: 0.6rem; margin-top: 0.6rem; }}
  .screenshot-item {{ text-align: center; }}
  .screenshot-item img {{ width: 100%; border-radius: 6px; border: 1px solid #e2e8f0; background: repeating-conic-gradient(#eee 0% 25%, white 0% 50%) 50% / 16px 16px; }}
  .screenshot-label {{ font-size: 0.75rem; color: #64748b; margin-top: 0.2rem; }}
</style>
</head>
<body>
  <h1>Visual Check Report</h1>
  <p class="meta">Run: {html.escape(run_result.run_id)} &middot; {html.escape(run_result.started_at)}</p>
  <div class="summary">
    <div class="stat"><div class="value">{len(run_result.checks)}</div><div>Checks</div></div>
    <div class="stat pass"><div class="value">{run_result.passed}</div><div>Passed</div></div>
    <div class="stat fail"><div class="value">{run_result.failed}</div><div>Failed</div></div>
  </div>
  {failures}
  {cards}
</body>
</html>'''

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report_html)
    logger.debug("Wrote HTML report with %d check(s) to %s", len(run_result.checks), output_path)
