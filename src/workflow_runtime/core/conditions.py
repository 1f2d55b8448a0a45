"""
Condition evaluation for CONDITION nodes
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, Mapping

from ..models.workflow import WorkflowNode


logger = logging.getLogger(__name__)


class BranchDecision(Enum):
    """Outcome of evaluating a condition node"""
    THEN = "then"
    ELSE = "else"
    UNRESOLVED = "unresolved"


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # decoded JSON numbers: 1.0 reads as "1"
        return str(int(value))
    return str(value)


def _equals(actual: Any, expected: Any) -> bool:
    return _as_text(actual) == _as_text(expected)


def _greater_than(actual: Any, expected: Any) -> bool:
    try:
        return float(actual) > float(expected)
    except (TypeError, ValueError):
        return False


def _less_than(actual: Any, expected: Any) -> bool:
    try:
        return float(actual) < float(expected)
    except (TypeError, ValueError):
        return False


def _contains(actual: Any, expected: Any) -> bool:
    if expected is None or expected == "":
        return False
    if isinstance(actual, Mapping):
        return _as_text(expected) in {_as_text(key) for key in actual}
    if isinstance(actual, (list, tuple, set, frozenset)):
        return any(_equals(item, expected) for item in actual)
    return _as_text(expected) in _as_text(actual)


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "equals": _equals,
    "not_equals": lambda actual, expected: not _equals(actual, expected),
    "truthy": lambda actual, expected: bool(actual),
    "is_true": lambda actual, expected: bool(actual),
    "is_false": lambda actual, expected: not actual,
    "gt": _greater_than,
    "greater_than": _greater_than,
    "lt": _less_than,
    "less_than": _less_than,
    "contains": _contains,
    "exists": lambda actual, expected: True,
}

KNOWN_OPERATORS = frozenset(OPERATORS)
DEFAULT_OPERATOR = "truthy"
# operators that are meaningless without a configured value
VALUE_OPERATORS = frozenset({"contains"})


class ConditionEvaluator:
    """Pure evaluator mapping a condition node and collected data to a branch"""

    def evaluate(self, node: WorkflowNode, collected_data: Mapping[str, Any]) -> BranchDecision:
        """
        Evaluate a condition node

        Args:
            node: a CONDITION node with config.field, config.operator, config.value
            collected_data: data collected so far

        Returns:
            BranchDecision: THEN or ELSE when the field is present, UNRESOLVED otherwise
        """
        if not node.is_condition:
            raise ValueError(f"Node '{node.id}' is a {node.type} node, not a condition")

        field_name = node.config.get("field")
        if not field_name or field_name not in collected_data:
            return BranchDecision.UNRESOLVED

        operator = node.config.get("operator") or DEFAULT_OPERATOR
        check = OPERATORS.get(operator)
        if check is None:
            raise ValueError(f"Unknown condition operator: {operator}")

        result = check(collected_data[field_name], node.config.get("value"))
        decision = BranchDecision.THEN if result else BranchDecision.ELSE

        logger.debug(
            f"Condition '{node.id}': {field_name} {operator} {node.config.get('value')!r} -> {decision.value}"
        )
        return decision
