from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..models import ActionItem, ContainerItem, InfoItem, ScreenItem
from .classifier import classify_node
from .dom_tree import DomNode
from .errors import TargetNotFound

_ITEM_TYPES = {"info": InfoItem, "action": ActionItem, "container": ContainerItem}


class NodeArena:
    """Id <-> live node handle table for one snapshot."""

    def __init__(self) -> None:
        self._by_id: Dict[int, Optional[str]] = {}
        self._by_handle: Dict[str, int] = {}

    def add(self, item_id: int, handle: Optional[str]) -> None:
        self._by_id[item_id] = handle
        if handle:
            self._by_handle[handle] = item_id

    def handle_for(self, item_id: int) -> Optional[str]:
        return self._by_id.get(item_id)

    def id_for(self, handle: str) -> Optional[int]:
        return self._by_handle.get(handle)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)


class SnapshotBuilder:
    """Walks a DomNode tree children-first and emits ScreenItems in id order.

    Ids are handed out only when a node turns out to produce an item, so a
    parent always gets a larger id than its classified children. The arena
    from the latest build is what ``resolve`` consults; every build replaces
    it wholesale.
    """

    def __init__(self) -> None:
        self.arena = NodeArena()
        self._next_id = 1

    def build(self, root: Optional[DomNode]) -> List[ScreenItem]:
        self._next_id = 1
        arena = NodeArena()
        drafts: Dict[int, dict[str, Any]] = {}

        if root is not None:
            self._visit(root, drafts, arena)

        self.arena = arena
        items = [_ITEM_TYPES[draft.pop("type")](**draft) for draft in drafts.values()]
        logging.debug("snapshot_built items=%s", len(items))
        return items

    def resolve(self, item_id: Optional[int]) -> str:
        if item_id is None or item_id not in self.arena:
            raise TargetNotFound(item_id)
        handle = self.arena.handle_for(item_id)
        if not handle:
            raise TargetNotFound(item_id, "no live handle recorded")
        return handle

    def _visit(self, node: DomNode, drafts: Dict[int, dict[str, Any]], arena: NodeArena) -> Optional[int]:
        if node.control_surface or node.hidden:
            return None

        child_ids: List[int] = []
        for child in node.children:
            child_id = self._visit(child, drafts, arena)
            if child_id is not None:
                child_ids.append(child_id)

        # Wrappers with no box are dropped even when their children were kept.
        if node.is_zero_size:
            return None

        classification = classify_node(node, child_ids)
        if classification is None:
            return None

        item_id = self._next_id
        self._next_id += 1
        for child_id in child_ids:
            drafts[child_id]["parent_id"] = item_id

        x, y, width, height = node.box
        draft: dict[str, Any] = {
            "type": classification.item_type,
            "id": item_id,
            "x": x,
            "y": y,
            "width": width,
            "height": height,
            "tag_name": node.tag,
            "text_content": node.text,
            "parent_id": None,
        }
        if classification.item_type == "container":
            draft["text_content"] = ""
            draft["child_ids"] = child_ids
        elif classification.item_type == "action":
            draft["placeholder"] = node.attributes.get("placeholder")
            draft["href"] = node.attributes.get("href")
            draft["possible_interactions"] = classification.possible_interactions
            draft["select_options"] = classification.select_options
        else:
            draft["alt"] = node.attributes.get("alt")

        drafts[item_id] = draft
        arena.add(item_id, node.handle)
        return item_id


def index_items(items: Sequence[ScreenItem]) -> Dict[int, ScreenItem]:
    return {item.id: item for item in items}


def children_of(items: Sequence[ScreenItem], parent_id: Optional[int]) -> List[ScreenItem]:
    return [item for item in items if item.parent_id == parent_id]
