"""
Flow runtime interpreter: templates, conditions, destinations, actions and
render resolution.
"""

from .actions import ActionDispatcher
from .conditions import (
    UNDEFINED,
    AllOf,
    AnyOf,
    Condition,
    ConditionLeaf,
    Not,
    condition_variables,
    evaluate_condition,
    parse_condition,
)
from .destinations import (
    NEXT,
    PREVIOUS,
    ConditionalDestination,
    ConditionalRoutes,
    Route,
    describe_destination,
    parse_destination,
    resolve_destination,
)
from .render import ResolvedNode, resolve_screen
from .selection import InputBuffer, SelectionState, group_has_selection, is_toggled, toggle
from .templates import resolve_template, template_variables

__all__ = [
    "ActionDispatcher",
    "UNDEFINED",
    "AllOf",
    "AnyOf",
    "Condition",
    "ConditionLeaf",
    "Not",
    "condition_variables",
    "evaluate_condition",
    "parse_condition",
    "NEXT",
    "PREVIOUS",
    "ConditionalDestination",
    "ConditionalRoutes",
    "Route",
    "describe_destination",
    "parse_destination",
    "resolve_destination",
    "ResolvedNode",
    "resolve_screen",
    "InputBuffer",
    "SelectionState",
    "group_has_selection",
    "is_toggled",
    "toggle",
    "resolve_template",
    "template_variables",
]
