"""Visual check orchestrator: runs checks and turns their results into assertions."""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from src.capture.interfaces import AssertionSink, ContextProvider, ReportSink
from src.engine.actions import get_action
from src.engine.visual_testing_engine import VisualTestingEngine
from src.errors import CollaboratorError, ConfigurationError
from src.models.config import ScreenshotParameters
from src.models.visual_check import (
    IgnoreStrategy,
    IgnoreTarget,
    VisualActionType,
    VisualCheck,
    VisualCheckResult,
)

logger = logging.getLogger(__name__)

VISUAL_CHECK_PASSED = "Visual check passed"


class StaticContextProvider:
    """Always hands out the same search context."""

    def __init__(self, context: Any):
        self.context = context

    def get_search_context(self) -> Any | None:
        return self.context


class VisualCheckOrchestrator:
    """Runs one visual check per call and records its verdict.

    Failures of the capture, locator and baseline collaborators are recorded
    as failed assertions so a single broken check never aborts a run.
    Configuration errors propagate.
    """

    def __init__(
        self,
        engine: VisualTestingEngine,
        context_provider: ContextProvider,
        assertion_sink: AssertionSink,
        report_sink: ReportSink | None = None,
    ):
        self.engine = engine
        self.context_provider = context_provider
        self.assertion_sink = assertion_sink
        self.report_sink = report_sink

    def run(
        self,
        action: VisualActionType,
        baseline_name: str,
        screenshot_parameters: Optional[ScreenshotParameters] = None,
        ignores: Optional[dict[IgnoreStrategy, set[IgnoreTarget]]] = None,
        acceptable_diff_percentage: Optional[int] = None,
        required_diff_percentage: Optional[int] = None,
    ) -> VisualCheckResult | None:
        """Run a single visual check. Returns None if nothing was checked."""
        search_context = self.context_provider.get_search_context()
        if search_context is None:
            logger.info("No search context available, skipping visual check '%s'", baseline_name)
            return None

        try:
            check = VisualCheck(
                baseline_name=baseline_name,
                action=action,
                acceptable_diff_percentage=acceptable_diff_percentage,
                required_diff_percentage=required_diff_percentage,
                elements_to_ignore=ignores or {},
                screenshot_parameters=screenshot_parameters,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid visual check '{baseline_name}': {e}") from e
        check.search_context = search_context

        try:
            result = self.engine.execute(check)
            if self.report_sink is not None:
                self.report_sink.publish(result)
        except (CollaboratorError, OSError) as e:
            logger.warning("Visual check '%s' failed: %s", baseline_name, e)
            self.assertion_sink.record_failed_assertion(e)
            return None

        self.verify_result(result)
        return result

    def verify_result(self, result: VisualCheckResult) -> None:
        action = get_action(result.action_type)
        if not action.asserts:
            return
        if not result.baseline_found:
            self.assertion_sink.record_failed_assertion(
                f"Unable to find baseline with name: {result.baseline_name}"
            )
            return
        if result.error:
            self.assertion_sink.record_failed_assertion(result.error)
            return
        self.assertion_sink.assert_true(VISUAL_CHECK_PASSED, action.verdict(bool(result.passed)))
