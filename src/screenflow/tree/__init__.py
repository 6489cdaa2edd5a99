"""
Element tree model, traversal and host style conversion.
"""

from .models import (
    CONTAINER_TYPES,
    ActionType,
    ElementAction,
    ElementNode,
    ElementPosition,
    ElementType,
    VisibleWhen,
    dump_elements,
    parse_elements,
)
from .sanitize import IMAGE_PLACEHOLDER, restore_inline_images, strip_inline_images
from .style import angle_to_points, convert_style, gradient_stops
from .traversal import (
    REMOVE,
    SKIP,
    TreeStrategy,
    collect_ids,
    ensure_unique_ids,
    find_node,
    find_parent,
    find_path,
    iter_nodes,
    transform,
    walk,
)

__all__ = [
    "CONTAINER_TYPES",
    "ActionType",
    "ElementAction",
    "ElementNode",
    "ElementPosition",
    "ElementType",
    "VisibleWhen",
    "dump_elements",
    "parse_elements",
    "IMAGE_PLACEHOLDER",
    "restore_inline_images",
    "strip_inline_images",
    "angle_to_points",
    "convert_style",
    "gradient_stops",
    "REMOVE",
    "SKIP",
    "TreeStrategy",
    "collect_ids",
    "ensure_unique_ids",
    "find_node",
    "find_parent",
    "find_path",
    "iter_nodes",
    "transform",
    "walk",
]
