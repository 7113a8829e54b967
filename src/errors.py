"""Exception hierarchy for visual checks."""

from __future__ import annotations

from typing import Any


class VisualCheckError(Exception):
    """Base exception for all visual check errors.

    Attributes:
        message: Human-readable error message
        error_code: Optional error code for programmatic handling
        context: Additional context information
    """

    def __init__(
        self, message: str, error_code: str | None = None, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(VisualCheckError):
    """Invalid capture or comparison configuration. Never retried."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message, error_code="CONFIGURATION", context=context)


class DimensionMismatchError(VisualCheckError):
    """Candidate and baseline images differ in size."""

    def __init__(self, candidate_size: tuple[int, int], baseline_size: tuple[int, int]) -> None:
        super().__init__(
            f"Checkpoint size {candidate_size[0]}x{candidate_size[1]} does not match "
            f"baseline size {baseline_size[0]}x{baseline_size[1]}",
            error_code="DIMENSION_MISMATCH",
            context={"candidate_size": candidate_size, "baseline_size": baseline_size},
        )
        self.candidate_size = candidate_size
        self.baseline_size = baseline_size


class CollaboratorError(VisualCheckError):
    """A capture provider or locator resolver failed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message, error_code="COLLABORATOR")
        self.cause = cause
