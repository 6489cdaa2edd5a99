"""
Navigation targets: literal tokens, if/then/else, and first-match route lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Set, Tuple, Union

from .conditions import Condition, condition_variables, evaluate_condition, parse_condition

NEXT = "next"
PREVIOUS = "previous"
CONDITIONAL = "conditional"


@dataclass(frozen=True)
class ConditionalDestination:
    if_: Condition
    then: "Destination"
    else_: Optional["Destination"] = None


@dataclass(frozen=True)
class Route:
    condition: Condition
    destination: "Destination"


@dataclass(frozen=True)
class ConditionalRoutes:
    routes: Tuple[Route, ...]
    default: Optional["Destination"] = None


Destination = Union[str, ConditionalDestination, ConditionalRoutes]


def parse_destination(raw: Any) -> Optional[Destination]:
    if raw is None or isinstance(raw, (str, ConditionalDestination, ConditionalRoutes)):
        return raw
    if not isinstance(raw, dict):
        return None
    if "if" in raw:
        return ConditionalDestination(
            if_=parse_condition(raw.get("if")),
            then=parse_destination(raw.get("then")),
            else_=parse_destination(raw.get("else")),
        )
    if "routes" in raw:
        routes = tuple(
            Route(condition=parse_condition(item.get("condition")), destination=parse_destination(item.get("destination")))
            for item in raw.get("routes") or []
            if isinstance(item, dict)
        )
        return ConditionalRoutes(routes=routes, default=parse_destination(raw.get("default")))
    return None


def resolve_destination(destination: Any, variables: Mapping[str, Any]) -> Optional[str]:
    """
    Reduce a destination to a concrete token. ``None`` means nothing matched;
    callers treat it as ``next``.
    """

    parsed = parse_destination(destination)
    if parsed is None or isinstance(parsed, str):
        return parsed
    if isinstance(parsed, ConditionalDestination):
        if evaluate_condition(parsed.if_, variables):
            return resolve_destination(parsed.then, variables)
        return resolve_destination(parsed.else_, variables)
    for route in parsed.routes:
        if evaluate_condition(route.condition, variables):
            return resolve_destination(route.destination, variables)
    return resolve_destination(parsed.default, variables)


def describe_destination(destination: Any) -> Optional[str]:
    """Analytics label: the literal token, ``"conditional"``, or None when absent."""
    if destination is None:
        return None
    if isinstance(destination, str):
        return destination
    return CONDITIONAL


def destination_variables(destination: Any) -> Set[str]:
    parsed = parse_destination(destination)
    if parsed is None or isinstance(parsed, str):
        return set()
    if isinstance(parsed, ConditionalDestination):
        return (
            condition_variables(parsed.if_)
            | destination_variables(parsed.then)
            | destination_variables(parsed.else_)
        )
    names: Set[str] = destination_variables(parsed.default)
    for route in parsed.routes:
        names |= condition_variables(route.condition) | destination_variables(route.destination)
    return names
