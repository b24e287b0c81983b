"""Evaluation of condition-step rules against a workflow context."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable

from ..contracts import ConditionRule
from ..errors import ConditionEvaluationError


def evaluate_conditions(rules: Iterable[ConditionRule], context: Dict[str, Any]) -> bool:
    """Return ``True`` when every rule holds (AND-conjunction).

    Evaluation stops at the first rule that does not hold. A missing property
    never satisfies an ordering, containment or regex rule.
    """
    return all(evaluate_rule(rule, context) for rule in rules)


def evaluate_rule(rule: ConditionRule, context: Dict[str, Any]) -> bool:
    value = context.get(rule.property)
    op = rule.operator

    if op == "equals":
        return value == rule.value
    if op == "not_equals":
        return value != rule.value
    if op == "exists":
        return value is not None
    if value is None:
        return False
    if op == "greater_than":
        return _to_number(value, rule) > _to_number(rule.value, rule)
    if op == "less_than":
        return _to_number(value, rule) < _to_number(rule.value, rule)
    if op == "contains":
        if isinstance(value, (list, tuple, set, frozenset, dict)):
            return rule.value in value
        return str(rule.value) in str(value)
    if op == "regex":
        try:
            pattern = re.compile(str(rule.value))
        except re.error as e:
            raise ConditionEvaluationError(rule.property, op, f"invalid pattern: {e}") from e
        return pattern.search(str(value)) is not None

    raise ConditionEvaluationError(rule.property, op, "unsupported operator")


def _to_number(value: Any, rule: ConditionRule) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConditionEvaluationError(
            rule.property, rule.operator, f"{value!r} is not numeric"
        ) from e
