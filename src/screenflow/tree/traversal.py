"""
Generic element tree traversal.

Every tree concern (lookup, id bookkeeping, patch merging) goes through the
two walks below so parent/path tracking lives in one place.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Optional, Sequence, Tuple

from ..errors import TreeError

if TYPE_CHECKING:  # pragma: no cover
    from .models import ElementNode

Path = Tuple[str, ...]

SKIP = object()
REMOVE = object()


def walk(nodes: Sequence["ElementNode"], visitor: Callable[["ElementNode", Path], Any], path: Path = ()) -> None:
    """Pre-order walk. ``visitor`` returning ``SKIP`` keeps the walk out of that subtree."""
    for node in nodes:
        if visitor(node, path) is SKIP:
            continue
        if node.children:
            walk(node.children, visitor, path + (node.id,))


def iter_nodes(nodes: Sequence["ElementNode"], path: Path = ()) -> Iterator[Tuple["ElementNode", Path]]:
    for node in nodes:
        yield node, path
        if node.children:
            yield from iter_nodes(node.children, path + (node.id,))


def find_node(nodes: Sequence["ElementNode"], node_id: str) -> Optional["ElementNode"]:
    for node, _ in iter_nodes(nodes):
        if node.id == node_id:
            return node
    return None


def find_path(nodes: Sequence["ElementNode"], node_id: str) -> Optional[Path]:
    """Ancestor ids of ``node_id`` (empty for a root element), or None when absent."""
    for node, path in iter_nodes(nodes):
        if node.id == node_id:
            return path
    return None


def find_parent(nodes: Sequence["ElementNode"], node_id: str) -> Optional["ElementNode"]:
    path = find_path(nodes, node_id)
    if not path:
        return None
    return find_node(nodes, path[-1])


def collect_ids(nodes: Sequence["ElementNode"]) -> List[str]:
    return [node.id for node, _ in iter_nodes(nodes)]


def subtree_ids(node: "ElementNode") -> List[str]:
    return collect_ids([node])


def duplicate_ids(nodes: Sequence["ElementNode"]) -> List[str]:
    counts = Counter(collect_ids(nodes))
    return sorted(node_id for node_id, count in counts.items() if count > 1)


def ensure_unique_ids(nodes: Sequence["ElementNode"]) -> None:
    dupes = duplicate_ids(nodes)
    if dupes:
        raise TreeError(
            f"Element ids must be unique within a screen; duplicated: {', '.join(dupes)}",
            code="SF-1002",
            element_id=dupes[0],
        )


class TreeStrategy:
    """
    Pluggable behaviour for :func:`transform`.

    ``enter`` may return a replacement node or ``REMOVE``; ``descend`` decides
    whether the (replacement) node's children are transformed; ``leave``
    receives the rebuilt child list and returns the final one.
    """

    def enter(self, node: "ElementNode", path: Path) -> Any:
        return node

    def descend(self, node: "ElementNode", path: Path) -> bool:
        return True

    def leave(self, node: "ElementNode", children: List["ElementNode"], path: Path) -> List["ElementNode"]:
        return children


def transform(nodes: Sequence["ElementNode"], strategy: TreeStrategy, path: Path = ()) -> List["ElementNode"]:
    """Rebuild a tree through ``strategy`` without mutating the input nodes."""
    rebuilt: List["ElementNode"] = []
    for node in nodes:
        updated = strategy.enter(node, path)
        if updated is REMOVE:
            continue
        child_path = path + (node.id,)
        if strategy.descend(updated, path):
            children = transform(updated.children, strategy, child_path)
        else:
            children = list(updated.children)
        children = strategy.leave(updated, children, child_path)
        rebuilt.append(replace(updated, children=children))
    return rebuilt
