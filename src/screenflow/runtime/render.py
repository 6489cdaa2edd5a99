"""
Resolves an element tree into what a declarative host needs to draw it:
visibility, interpolated text, input values and selection state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..tree.models import ActionType, ElementNode, ElementType
from ..tree.style import convert_style
from .conditions import evaluate_condition
from .selection import InputBuffer, SelectionState, group_has_selection, is_toggled
from .templates import resolve_template

TOGGLED_BORDER_COLOR = "#000000"
TOGGLE_BORDER_WIDTH = 2


@dataclass
class ResolvedNode:
    id: str
    type: ElementType
    style: Dict[str, Any] = field(default_factory=dict)
    props: Dict[str, Any] = field(default_factory=dict)
    children: List["ResolvedNode"] = field(default_factory=list)
    text: Optional[str] = None
    value: Optional[str] = None
    toggled: bool = False
    group_visible: bool = True
    interactive: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "style": dict(self.style),
            "props": dict(self.props),
            "toggled": self.toggled,
            "group_visible": self.group_visible,
            "interactive": self.interactive,
        }
        if self.type.is_container:
            out["children"] = [child.to_dict() for child in self.children]
        if self.text is not None:
            out["text"] = self.text
        if self.value is not None:
            out["value"] = self.value
        return out


@dataclass
class _RenderContext:
    variables: Mapping[str, Any]
    selection: SelectionState
    inputs: InputBuffer


KindResolver = Callable[[ElementNode, ResolvedNode, _RenderContext], None]


def _stack(direction: str) -> KindResolver:
    def _resolve(node: ElementNode, out: ResolvedNode, ctx: _RenderContext) -> None:
        out.style["flexDirection"] = direction

    return _resolve


def _zstack(node: ElementNode, out: ResolvedNode, ctx: _RenderContext) -> None:
    # Children after the first overlay the whole stack unless they position themselves.
    sources = {child.id: (index, child) for index, child in enumerate(node.children)}
    for resolved in out.children:
        index, source = sources[resolved.id]
        if index > 0 and (source.position is None or not source.position.type):
            resolved.style.update({"position": "absolute", "top": 0, "left": 0, "right": 0, "bottom": 0})


def _scrollview(node: ElementNode, out: ResolvedNode, ctx: _RenderContext) -> None:
    out.props["horizontal"] = node.props.get("direction") == "horizontal"


def _text(node: ElementNode, out: ResolvedNode, ctx: _RenderContext) -> None:
    out.text = resolve_template(str(node.props.get("text") or ""), ctx.variables)


def _input(node: ElementNode, out: ResolvedNode, ctx: _RenderContext) -> None:
    out.value = ctx.inputs.value_for(node, ctx.variables)
    placeholder = node.props.get("placeholder")
    if isinstance(placeholder, str):
        out.props["placeholder"] = resolve_template(placeholder, ctx.variables)


def _icon(node: ElementNode, out: ResolvedNode, ctx: _RenderContext) -> None:
    out.text = node.props.get("emoji") or None


def _passthrough(node: ElementNode, out: ResolvedNode, ctx: _RenderContext) -> None:
    return None


_KIND_RESOLVERS: Dict[ElementType, KindResolver] = {
    ElementType.VSTACK: _stack("column"),
    ElementType.HSTACK: _stack("row"),
    ElementType.ZSTACK: _zstack,
    ElementType.SCROLLVIEW: _scrollview,
    ElementType.TEXT: _text,
    ElementType.INPUT: _input,
    ElementType.ICON: _icon,
    ElementType.IMAGE: _passthrough,
    ElementType.VIDEO: _passthrough,
    ElementType.LOTTIE: _passthrough,
    ElementType.SPACER: _passthrough,
    ElementType.DIVIDER: _passthrough,
}

_missing_kinds = set(ElementType) - set(_KIND_RESOLVERS)
if _missing_kinds:  # pragma: no cover - guarded at import
    raise RuntimeError(f"No render resolver for element types: {sorted(k.value for k in _missing_kinds)}")


def _resolve_node(node: ElementNode, ctx: _RenderContext) -> Optional[ResolvedNode]:
    if node.show_if is not None and not evaluate_condition(node.show_if, ctx.variables):
        return None
    out = ResolvedNode(
        id=node.id,
        type=node.type,
        style=convert_style(node.style),
        props=dict(node.props),
        interactive=bool(node.all_actions),
    )
    if node.has_action_type(ActionType.TOGGLE):
        out.toggled = is_toggled(ctx.selection, node.id)
        if out.toggled:
            out.style["borderWidth"] = TOGGLE_BORDER_WIDTH
            out.style["borderColor"] = node.style.get("borderColor") or TOGGLED_BORDER_COLOR
        else:
            out.style["borderWidth"] = node.style.get("borderWidth") or TOGGLE_BORDER_WIDTH
            out.style["borderColor"] = "transparent"
    if node.visible_when is not None:
        shown = group_has_selection(ctx.selection, node.visible_when.group) == node.visible_when.has_selection
        out.group_visible = shown
        out.style["opacity"] = 1 if shown else 0
        if not shown:
            out.interactive = False
    if node.type.is_container:
        out.children = [child for child in (_resolve_node(c, ctx) for c in node.children) if child is not None]
    _KIND_RESOLVERS[node.type](node, out, ctx)
    return out


def resolve_screen(
    elements: Sequence[ElementNode],
    variables: Mapping[str, Any],
    selection: Optional[SelectionState] = None,
    inputs: Optional[InputBuffer] = None,
) -> List[ResolvedNode]:
    ctx = _RenderContext(variables=variables, selection=selection or SelectionState(), inputs=inputs or InputBuffer())
    resolved = (_resolve_node(node, ctx) for node in elements)
    return [node for node in resolved if node is not None]
