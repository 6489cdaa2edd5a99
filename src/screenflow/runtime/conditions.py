"""
Boolean conditions over the variable scope.

Wire form is either a leaf ``{variable, operator, value}`` or one of the
combinators ``{all: [...]}``, ``{any: [...]}``, ``{not: {...}}``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Set, Tuple, Union

logger = logging.getLogger("screenflow.runtime.conditions")

UNDEFINED = object()


@dataclass(frozen=True)
class ConditionLeaf:
    variable: str
    operator: str
    value: Any = None


@dataclass(frozen=True)
class AllOf:
    conditions: Tuple["Condition", ...] = ()


@dataclass(frozen=True)
class AnyOf:
    conditions: Tuple["Condition", ...] = ()


@dataclass(frozen=True)
class Not:
    condition: "Condition"


Condition = Union[ConditionLeaf, AllOf, AnyOf, Not]
_PARSED = (ConditionLeaf, AllOf, AnyOf, Not)


def parse_condition(data: Any) -> Condition:
    """
    Parse a wire condition. Combinator keys win over leaf keys, checked in the
    order ``all``, ``any``, ``not``; a dict with neither is vacuously true.
    """

    if isinstance(data, _PARSED):
        return data
    if not isinstance(data, dict):
        return AllOf()
    if "all" in data:
        return AllOf(tuple(parse_condition(item) for item in data.get("all") or []))
    if "any" in data:
        return AnyOf(tuple(parse_condition(item) for item in data.get("any") or []))
    if "not" in data:
        return Not(parse_condition(data.get("not")))
    if "variable" in data:
        return ConditionLeaf(
            variable=str(data.get("variable")),
            operator=str(data.get("operator") or ""),
            value=data.get("value"),
        )
    return AllOf()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_number(value: Any) -> Optional[float]:
    if _is_number(value):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def _strict_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def _compare(left: Any, right: Any, predicate: Callable[[Any, Any], bool]) -> bool:
    left_num, right_num = _as_number(left), _as_number(right)
    if left_num is not None and right_num is not None:
        return predicate(left_num, right_num)
    if isinstance(left, str) and isinstance(right, str):
        return predicate(left, right)
    return False


def _is_empty(value: Any) -> bool:
    if value is UNDEFINED or value is None:
        return True
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    return False


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str):
        return isinstance(expected, str) and expected in actual
    if isinstance(actual, (list, tuple)):
        return any(_strict_equals(item, expected) for item in actual)
    return False


def _member_of(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, (list, tuple)):
        return False
    return any(_strict_equals(actual, item) for item in expected)


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "equals": _strict_equals,
    "not_equals": lambda actual, expected: not _strict_equals(actual, expected),
    "greater_than": lambda actual, expected: _compare(actual, expected, lambda a, b: a > b),
    "less_than": lambda actual, expected: _compare(actual, expected, lambda a, b: a < b),
    "contains": _contains,
    "in": _member_of,
    "is_empty": lambda actual, _expected: _is_empty(actual),
    "is_not_empty": lambda actual, _expected: not _is_empty(actual),
}

OPERATORS = frozenset(_OPERATORS)


def _evaluate_leaf(leaf: ConditionLeaf, variables: Mapping[str, Any]) -> bool:
    op = _OPERATORS.get(leaf.operator)
    if op is None:
        logger.debug("Unknown condition operator '%s' on variable '%s'", leaf.operator, leaf.variable)
        return False
    actual = variables.get(leaf.variable, UNDEFINED)
    return op(actual, leaf.value)


def evaluate_condition(condition: Any, variables: Mapping[str, Any]) -> bool:
    """Evaluate a parsed or wire condition. ``None`` means unconditional."""
    if condition is None:
        return True
    parsed = parse_condition(condition)
    if isinstance(parsed, ConditionLeaf):
        return _evaluate_leaf(parsed, variables)
    if isinstance(parsed, AllOf):
        return all(evaluate_condition(child, variables) for child in parsed.conditions)
    if isinstance(parsed, AnyOf):
        return any(evaluate_condition(child, variables) for child in parsed.conditions)
    return not evaluate_condition(parsed.condition, variables)


def condition_variables(condition: Any) -> Set[str]:
    if condition is None:
        return set()
    parsed = parse_condition(condition)
    if isinstance(parsed, ConditionLeaf):
        return {parsed.variable}
    if isinstance(parsed, (AllOf, AnyOf)):
        names: Set[str] = set()
        for child in parsed.conditions:
            names |= condition_variables(child)
        return names
    return condition_variables(parsed.condition)
