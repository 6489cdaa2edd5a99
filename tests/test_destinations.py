from screenflow.runtime.destinations import (
    CONDITIONAL,
    describe_destination,
    destination_variables,
    resolve_destination,
)


def test_literal_tokens_pass_through():
    assert resolve_destination("next", {}) == "next"
    assert resolve_destination("previous", {}) == "previous"
    assert resolve_destination("screen_x", {}) == "screen_x"
    assert resolve_destination(None, {}) is None


def test_if_then_else():
    destination = {"if": {"variable": "plan", "operator": "equals", "value": "pro"}, "then": "pro_screen", "else": "next"}
    assert resolve_destination(destination, {"plan": "pro"}) == "pro_screen"
    assert resolve_destination(destination, {"plan": "free"}) == "next"


def test_if_without_else_resolves_to_none():
    destination = {"if": {"variable": "plan", "operator": "equals", "value": "pro"}, "then": "pro_screen"}
    assert resolve_destination(destination, {}) is None


def test_routes_first_match_wins_then_default():
    destination = {
        "routes": [
            {"condition": {"variable": "age", "operator": "less_than", "value": 18}, "destination": "minor"},
            {"condition": {"variable": "age", "operator": "less_than", "value": 65}, "destination": "adult"},
        ],
        "default": "senior",
    }
    assert resolve_destination(destination, {"age": 10}) == "minor"
    assert resolve_destination(destination, {"age": 40}) == "adult"
    assert resolve_destination(destination, {"age": 70}) == "senior"
    assert resolve_destination({"routes": []}, {}) is None


def test_nested_destinations():
    destination = {
        "if": {"variable": "a", "operator": "is_not_empty"},
        "then": {"routes": [{"condition": {"variable": "b", "operator": "equals", "value": 1}, "destination": "deep"}]},
        "else": "shallow",
    }
    assert resolve_destination(destination, {"a": "x", "b": 1}) == "deep"
    assert destination_variables(destination) == {"a", "b"}


def test_describe_destination():
    assert describe_destination("next") == "next"
    assert describe_destination({"if": {}, "then": "x"}) == CONDITIONAL
    assert describe_destination(None) is None


def test_malformed_destination_is_none():
    assert resolve_destination(42, {}) is None
    assert resolve_destination({"goto": "x"}, {}) is None
