"""Soft assertions: record failures without aborting the surrounding run."""

from __future__ import annotations

import logging

from src.models.test_result import AssertionResult

logger = logging.getLogger(__name__)


class SoftAssert:
    """Collects assertion results; nothing here ever raises."""

    def __init__(self) -> None:
        self.results: list[AssertionResult] = []

    def assert_true(self, description: str, condition: bool) -> bool:
        passed = bool(condition)
        self.results.append(AssertionResult(description=description, passed=passed))
        if passed:
            logger.info("Passed: %s", description)
        else:
            logger.error("Failed: %s", description)
        return passed

    def record_failed_assertion(self, failure: str | Exception) -> None:
        if isinstance(failure, Exception):
            message = str(failure) or type(failure).__name__
            result = AssertionResult(
                description="Visual check error",
                passed=False,
                message=message,
                error_type=type(failure).__name__,
            )
        else:
            result = AssertionResult(description=failure, passed=False, message=failure)
        self.results.append(result)
        logger.error("Failed assertion: %s", result.message)

    @property
    def failed(self) -> list[AssertionResult]:
        return [r for r in self.results if not r.passed]

    @property
    def all_passed(self) -> bool:
        return not self.failed
