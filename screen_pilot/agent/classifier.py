"""Per-node classification: item variant plus the interactions an element plausibly supports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Sequence

from ..models import InteractionKind, SelectOption
from .dom_tree import DomNode

ItemType = Literal["info", "action", "container"]

INTERACTIVE_TAGS = frozenset({"BUTTON", "INPUT", "A", "SELECT", "TEXTAREA"})

NON_TEXT_INPUT_TYPES = frozenset({"checkbox", "radio", "button", "submit", "range", "file", "hidden", "image"})

BASE_INTERACTIONS = (
    InteractionKind.HOVER,
    InteractionKind.FOCUS,
    InteractionKind.CLICK,
    InteractionKind.RIGHT_CLICK,
    InteractionKind.DOUBLE_CLICK,
)


@dataclass
class Classification:
    item_type: ItemType
    possible_interactions: List[InteractionKind] = field(default_factory=list)
    select_options: List[SelectOption] = field(default_factory=list)


def is_interactive(node: DomNode) -> bool:
    return node.tag in INTERACTIVE_TAGS


def accepts_text(node: DomNode) -> bool:
    if node.tag == "TEXTAREA":
        return True
    return node.tag == "INPUT" and node.input_type not in NON_TEXT_INPUT_TYPES


def possible_interactions(node: DomNode) -> List[InteractionKind]:
    if not is_interactive(node):
        return []
    kinds: List[InteractionKind] = list(BASE_INTERACTIONS)
    if accepts_text(node):
        kinds.append(InteractionKind.TYPE_TEXT)
    if node.tag == "SELECT":
        kinds.append(InteractionKind.SELECT_OPTION)
    if node.is_draggable:
        kinds.append(InteractionKind.DRAG)
    if node.is_scrollable:
        kinds.append(InteractionKind.SCROLL)
    return kinds


def select_options(node: DomNode) -> List[SelectOption]:
    if node.tag != "SELECT":
        return []
    return [SelectOption(value=value, text=text) for value, text in node.options]


def classify_node(node: DomNode, child_ids: Sequence[int]) -> Optional[Classification]:
    """Decide which item variant ``node`` produces, or None when it produces nothing.

    Interactive tags always become actions. Any other node with at least one
    classified child is a container; childless nodes are info only when they
    carry non-empty text, so a bare image produces nothing. Layout checks
    such as the zero-size rule belong to the caller.
    """

    if is_interactive(node):
        return Classification(
            item_type="action",
            possible_interactions=possible_interactions(node),
            select_options=select_options(node),
        )
    if child_ids:
        return Classification(item_type="container")
    if node.text:
        return Classification(item_type="info")
    return None
