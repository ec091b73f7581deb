"""Condition evaluator - turns a checker's context into per-condition verdicts."""
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from ..schemas.monitor import Condition

logger = logging.getLogger(__name__)


@dataclass
class ConditionResult:
    """Outcome of one condition, kept for diagnostics."""
    condition: str
    success: bool


def _as_number(value: Any) -> Optional[float]:
    # bool is an int subclass but never a meaningful number here
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _equals(actual: Any, expected: Any) -> bool:
    actual_num, expected_num = _as_number(actual), _as_number(expected)
    if actual_num is not None and expected_num is not None:
        return actual_num == expected_num
    if isinstance(actual, bool) or isinstance(expected, bool):
        return str(actual).lower() == str(expected).lower()
    return actual == expected


def _order(actual: Any, expected: Any, op: str) -> bool:
    actual_num, expected_num = _as_number(actual), _as_number(expected)
    if actual_num is not None and expected_num is not None:
        actual, expected = actual_num, expected_num
    elif not (isinstance(actual, str) and isinstance(expected, str)):
        return False
    if op == "<":
        return actual < expected
    if op == "<=":
        return actual <= expected
    if op == ">":
        return actual > expected
    return actual >= expected


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, list):
        return any(_equals(item, expected) for item in actual)
    if isinstance(actual, str):
        return str(expected) in actual
    return False


def _matches(actual: Any, pattern: Any) -> bool:
    if not isinstance(pattern, str):
        return False
    try:
        return re.search(pattern, str(actual)) is not None
    except re.error as e:
        logger.warning(f"Invalid condition pattern {pattern!r}: {e}")
        return False


def evaluate_condition(condition: Condition, context: Mapping[str, Any]) -> ConditionResult:
    """Evaluate a single condition. Missing keys and type mismatches fail, never raise."""
    description = condition.describe()
    if condition.key not in context:
        return ConditionResult(condition=description, success=False)

    actual = context[condition.key]
    expected = condition.expected_value
    op = condition.operator

    if op == "==":
        success = _equals(actual, expected)
    elif op == "!=":
        success = not _equals(actual, expected)
    elif op in ("<", "<=", ">", ">="):
        success = _order(actual, expected, op)
    elif op == "contains":
        success = _contains(actual, expected)
    elif op == "not_contains":
        success = isinstance(actual, (list, str)) and not _contains(actual, expected)
    elif op == "matches":
        success = _matches(actual, expected)
    else:
        success = False

    return ConditionResult(condition=description, success=success)


def evaluate(conditions: Iterable[Condition], context: Mapping[str, Any]) -> List[ConditionResult]:
    """Evaluate every condition in declaration order.

    All conditions are evaluated even after a failure; combining them with the
    checker's own verdict is up to the caller.
    """
    return [evaluate_condition(condition, context) for condition in conditions]
