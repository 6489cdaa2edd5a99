"""
Authoring style to host style conversion.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Tuple

_VALUE_KEYS = (
    # layout
    "flex",
    "gap",
    # spacing
    "padding",
    "paddingTop",
    "paddingBottom",
    "paddingLeft",
    "paddingRight",
    "marginTop",
    "marginBottom",
    "marginLeft",
    "marginRight",
    # size
    "width",
    "height",
    "maxWidth",
    "minHeight",
    # visual
    "opacity",
    "borderRadius",
    "borderWidth",
    "borderBottomWidth",
    # text
    "fontSize",
    "letterSpacing",
)

# Copied only when truthy, zero/empty strings mean "unset" for these.
_TRUTHY_KEYS = (
    "flexDirection",
    "justifyContent",
    "alignItems",
    "alignSelf",
    "flexWrap",
    "overflow",
    "backgroundColor",
    "borderColor",
    "borderBottomColor",
    "color",
    "fontWeight",
    "textAlign",
    "textTransform",
    "textDecorationLine",
)

DEFAULT_FONT_SIZE = 16
LINE_HEIGHT_MULTIPLIER_LIMIT = 4


def convert_style(style: Dict[str, Any] | None, *, gradients_supported: bool = False) -> Dict[str, Any]:
    host: Dict[str, Any] = {}
    if not style:
        return host
    for key in _VALUE_KEYS:
        if style.get(key) is not None:
            host[key] = style[key]
    for key in _TRUTHY_KEYS:
        if style.get(key):
            host[key] = style[key]

    line_height = style.get("lineHeight")
    if isinstance(line_height, (int, float)) and not isinstance(line_height, bool):
        if line_height > LINE_HEIGHT_MULTIPLIER_LIMIT:
            host["lineHeight"] = line_height
        else:
            host["lineHeight"] = (style.get("fontSize") or DEFAULT_FONT_SIZE) * line_height

    if style.get("shadowColor"):
        radius = style.get("shadowRadius") or 4
        host["shadowColor"] = style["shadowColor"]
        host["shadowOpacity"] = style.get("shadowOpacity") or 0.2
        host["shadowRadius"] = radius
        host["shadowOffset"] = {
            "width": style.get("shadowOffsetX") or 0,
            "height": style.get("shadowOffsetY") or 2,
        }
        host["elevation"] = radius

    gradient = style.get("backgroundGradient")
    if isinstance(gradient, dict) and gradient.get("colors"):
        if gradients_supported:
            host["backgroundGradient"] = gradient
        else:
            colors, _ = gradient_stops(gradient)
            host["backgroundColor"] = colors[0]
    return host


def gradient_stops(gradient: Dict[str, Any]) -> Tuple[List[str], List[float]]:
    """Normalise gradient colors into parallel color / location lists (0..1)."""
    raw = gradient.get("colors") or []
    last = max(len(raw) - 1, 1)
    colors: List[str] = []
    locations: List[float] = []
    for idx, entry in enumerate(raw):
        if isinstance(entry, str):
            colors.append(entry)
            locations.append(idx / last)
            continue
        colors.append(entry.get("color"))
        position = entry.get("position")
        if position is None:
            position = round((idx / last) * 100)
        locations.append(position / 100)
    return colors, locations


def angle_to_points(angle: float) -> Dict[str, Dict[str, float]]:
    """CSS gradient angle (0 = to top, 90 = to right) as unit start/end points."""
    rad = math.radians(angle - 90)
    dx = math.cos(rad) * 0.5
    dy = math.sin(rad) * 0.5
    return {
        "start": {"x": 0.5 - dx, "y": 0.5 - dy},
        "end": {"x": 0.5 + dx, "y": 0.5 + dy},
    }
