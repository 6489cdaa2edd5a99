import pytest

from screenflow.runtime.conditions import (
    AllOf,
    AnyOf,
    ConditionLeaf,
    OPERATORS,
    Not,
    condition_variables,
    evaluate_condition,
    parse_condition,
)


def leaf(variable, operator, value=None):
    return {"variable": variable, "operator": operator, "value": value}


OPERATOR_CASES = [
    ("equals", "pro", "pro", True),
    ("equals", 1, 1.0, True),
    ("equals", True, 1, False),
    ("equals", "1", 1, False),
    ("not_equals", "a", "b", True),
    ("greater_than", 5, 3, True),
    ("greater_than", "10", 9, True),
    ("greater_than", "b", "a", True),
    ("greater_than", True, 0, False),
    ("less_than", 2, 3, True),
    ("less_than", None, 3, False),
    ("contains", "hello world", "world", True),
    ("contains", ["a", "b"], "b", True),
    ("contains", [1, 2], "1", False),
    ("in", "b", ["a", "b"], True),
    ("in", "c", "abc", False),
    ("is_empty", "", None, True),
    ("is_empty", [], None, True),
    ("is_empty", 0, None, False),
    ("is_not_empty", "x", None, True),
]


@pytest.mark.parametrize("operator,actual,expected,result", OPERATOR_CASES)
def test_operators(operator, actual, expected, result):
    assert evaluate_condition(leaf("v", operator, expected), {"v": actual}) is result


def test_missing_variable_is_empty_and_not_equal():
    assert evaluate_condition(leaf("v", "is_empty"), {}) is True
    assert evaluate_condition(leaf("v", "equals", None), {}) is False
    assert evaluate_condition(leaf("v", "not_equals", "x"), {}) is True


def test_unknown_operator_fails_closed():
    assert evaluate_condition(leaf("v", "matches", ".*"), {"v": "anything"}) is False


def test_none_is_unconditional():
    assert evaluate_condition(None, {}) is True


def test_combinators():
    scope = {"age": 30, "plan": "pro"}
    assert evaluate_condition({"all": [leaf("age", "greater_than", 18), leaf("plan", "equals", "pro")]}, scope)
    assert not evaluate_condition({"any": [leaf("age", "less_than", 18), leaf("plan", "equals", "free")]}, scope)
    assert evaluate_condition({"not": leaf("plan", "equals", "free")}, scope)
    assert evaluate_condition({"all": []}, scope) is True
    assert evaluate_condition({"any": []}, scope) is False


def test_combinator_precedence_and_vacuous_dict():
    parsed = parse_condition({"all": [], "any": [leaf("x", "equals", 1)], "variable": "y"})
    assert parsed == AllOf(())
    assert parse_condition({}) == AllOf(())
    assert isinstance(parse_condition({"not": leaf("x", "is_empty")}), Not)
    assert isinstance(parse_condition({"any": []}), AnyOf)
    assert parse_condition(leaf("x", "equals", 2)) == ConditionLeaf("x", "equals", 2)


def test_condition_variables():
    condition = {"all": [leaf("a", "equals", 1), {"not": {"any": [leaf("b", "is_empty"), leaf("c", "in", [1])]}}]}
    assert condition_variables(condition) == {"a", "b", "c"}
    assert condition_variables(None) == set()


SCOPE = {"age": 30, "plan": "pro", "tags": ["beta"], "nickname": ""}

COMBINATOR_CASES = [
    {"all": [leaf("age", "greater_than", 18), leaf("plan", "equals", "pro")]},
    {"all": [leaf("age", "greater_than", 18), leaf("plan", "equals", "free")]},
    {"any": [leaf("age", "less_than", 18), leaf("tags", "contains", "beta")]},
    {"any": [leaf("age", "less_than", 18), leaf("nickname", "is_not_empty")]},
    {"all": []},
    {"any": []},
    {"not": leaf("plan", "in", ["free", "trial"])},
    {"not": {"all": [leaf("nickname", "is_empty"), {"any": [leaf("age", "equals", 30)]}]}},
]


def test_operator_cases_cover_every_operator():
    assert {case[0] for case in OPERATOR_CASES} == OPERATORS


@pytest.mark.parametrize("operator,actual,expected,result", OPERATOR_CASES)
def test_not_inverts_each_operator(operator, actual, expected, result):
    condition = leaf("v", operator, expected)
    scope = {"v": actual}
    assert evaluate_condition({"not": condition}, scope) is (not result)
    assert evaluate_condition({"not": {"not": condition}}, scope) is result


@pytest.mark.parametrize("condition", COMBINATOR_CASES)
def test_not_inverts_each_combinator(condition):
    assert evaluate_condition({"not": condition}, SCOPE) is (not evaluate_condition(condition, SCOPE))
