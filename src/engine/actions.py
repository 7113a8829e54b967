"""Per-action behaviour: which threshold a check uses and how its verdict is derived."""

from __future__ import annotations

from src.models.config import VisualConfig
from src.models.visual_check import VisualActionType, VisualCheck, VisualCheckResult


class VisualAction:
    action_type: VisualActionType
    requires_baseline = True
    asserts = True

    def threshold(self, check: VisualCheck, config: VisualConfig) -> int:
        raise NotImplementedError

    def verdict(self, diff_passed: bool) -> bool:
        """Final verdict: the "same" classification XOR whether inequality is required."""
        return diff_passed ^ (self.action_type is VisualActionType.CHECK_INEQUALITY_AGAINST)


class EstablishAction(VisualAction):
    action_type = VisualActionType.ESTABLISH
    requires_baseline = False
    asserts = False

    def threshold(self, check: VisualCheck, config: VisualConfig) -> int:
        return 0


class CompareAgainstAction(VisualAction):
    action_type = VisualActionType.COMPARE_AGAINST

    def threshold(self, check: VisualCheck, config: VisualConfig) -> int:
        if check.acceptable_diff_percentage is not None:
            return check.acceptable_diff_percentage
        return config.acceptable_diff_percentage


class CheckInequalityAction(VisualAction):
    action_type = VisualActionType.CHECK_INEQUALITY_AGAINST

    def threshold(self, check: VisualCheck, config: VisualConfig) -> int:
        if check.required_diff_percentage is not None:
            return check.required_diff_percentage
        return config.required_diff_percentage


ACTIONS: dict[VisualActionType, VisualAction] = {
    action.action_type: action
    for action in (EstablishAction(), CompareAgainstAction(), CheckInequalityAction())
}


def get_action(action_type: VisualActionType) -> VisualAction:
    return ACTIONS[action_type]


def resolve_verdict(result: VisualCheckResult) -> bool | None:
    """Overall verdict for a result; None when the action makes no assertion."""
    action = get_action(result.action_type)
    if not action.asserts:
        return None
    if not result.baseline_found or result.error or result.passed is None:
        return False
    return action.verdict(result.passed)
