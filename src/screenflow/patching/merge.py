"""
Pure merge of change records into an element tree.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Set

from ..observability.metrics import RuntimeMetrics, default_metrics
from ..tree.models import ElementNode, dump_elements, parse_elements
from ..tree.traversal import REMOVE, SKIP, TreeStrategy, collect_ids, transform, walk
from .models import Change, parse_changes

logger = logging.getLogger("screenflow.patching")


@dataclass
class MergeReport:
    elements: List[ElementNode]
    applied: int = 0
    ignored: int = 0


class _MergeStrategy(TreeStrategy):
    def __init__(self, changes: Sequence[Change], taken_ids: Set[str]) -> None:
        self.by_id: Dict[str, List[Change]] = {}
        self.inserts: Dict[Optional[str], List[Change]] = {}
        for change in changes:
            if change.id is not None:
                self.by_id.setdefault(change.id, []).append(change)
            if change.insert is not None:
                self.inserts.setdefault(change.id, []).append(change)
        self.taken_ids = taken_ids
        self.matched: Set[Optional[str]] = set()

    def enter(self, node: ElementNode, path) -> Any:
        changes = self.by_id.get(node.id)
        if not changes:
            return node
        self.matched.add(node.id)
        if any(change.remove for change in changes):
            return REMOVE
        for change in changes:
            node = change.apply_fields(node)
        if node.type.is_container and any(change.children is not None for change in changes):
            # replaced-away ids were freed up front; the new children claim theirs here
            claimed = [self._claim(child, "replacement child") for child in node.children]
            node = replace(node, children=[child for child in claimed if child is not None])
        return node

    def descend(self, node: ElementNode, path) -> bool:
        return not any(c.children is not None for c in self.by_id.get(node.id, ()))

    def leave(self, node: ElementNode, children: List[ElementNode], path) -> List[ElementNode]:
        pending = self.inserts.get(node.id)
        if not pending:
            return children
        if not node.type.is_container:
            logger.debug("Ignoring %d insert(s) into leaf element '%s'", len(pending), node.id)
            return children
        return self.place(children, pending)

    def _claim(self, element: ElementNode, kind: str = "inserted element") -> Optional[ElementNode]:
        ids = collect_ids([element])
        clash = sorted({i for i in ids if i in self.taken_ids or ids.count(i) > 1})
        if clash:
            logger.debug("Skipping %s '%s': id(s) already in tree: %s", kind, element.id, ", ".join(clash))
            return None
        self.taken_ids.update(ids)
        return copy.deepcopy(element)

    def place(self, children: List[ElementNode], pending: Sequence[Change]) -> List[ElementNode]:
        # after: anchors are placed while walking the built children
        placed: List[ElementNode] = []
        for child in children:
            placed.append(child)
            for change in pending:
                kind, anchor = change.anchor
                if kind == "after" and anchor == child.id:
                    element = self._claim(change.insert)
                    if element is not None:
                        placed.append(element)
        for change in pending:
            kind, anchor = change.anchor
            if kind == "after":
                continue
            if kind == "unknown":
                logger.debug("Ignoring insert with unknown position '%s'", anchor)
                continue
            element = self._claim(change.insert)
            if element is None:
                continue
            if kind == "first":
                placed.insert(0, element)
            elif kind == "before":
                index = next((i for i, ch in enumerate(placed) if ch.id == anchor), None)
                if index is None:
                    placed.append(element)
                else:
                    placed.insert(index, element)
            else:
                placed.append(element)
        return placed


def _surviving_ids(tree: Sequence[ElementNode], changes: Sequence[Change]) -> Set[str]:
    removed = {change.id for change in changes if change.remove and change.id}
    replaced = {change.id for change in changes if change.children is not None and change.id}
    ids: Set[str] = set()

    def _visit(node: ElementNode, path) -> Any:
        if node.id in removed:
            return SKIP
        ids.add(node.id)
        if node.id in replaced and node.type.is_container:
            return SKIP
        return None

    walk(tree, _visit)
    return ids


def merge_report(
    tree: Sequence[ElementNode],
    changes: Sequence[Any],
    *,
    metrics: Optional[RuntimeMetrics] = None,
) -> MergeReport:
    parsed = parse_changes(changes)
    if not parsed:
        return MergeReport(elements=copy.deepcopy(list(tree)))
    strategy = _MergeStrategy(parsed, _surviving_ids(tree, parsed))
    merged = transform(copy.deepcopy(list(tree)), strategy)
    root_inserts = strategy.inserts.get(None)
    if root_inserts:
        merged = strategy.place(merged, root_inserts)
    applied = sum(1 for c in parsed if c.id in strategy.matched or c.is_root_insert)
    report = MergeReport(elements=merged, applied=applied, ignored=len(parsed) - applied)
    if report.ignored:
        logger.debug("%d change(s) targeted ids not present in the tree", report.ignored)
    (metrics or default_metrics).record_changes(report.applied, report.ignored)
    return report


def merge(tree: Sequence[ElementNode], changes: Sequence[Any]) -> List[ElementNode]:
    """
    Apply ``changes`` to ``tree`` and return a new tree; the input is never
    mutated. Changes naming missing or removed ids are ignored.
    """

    return merge_report(tree, changes).elements


def merge_elements(elements: List[Dict[str, Any]], changes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return dump_elements(merge(parse_elements(elements), changes))
