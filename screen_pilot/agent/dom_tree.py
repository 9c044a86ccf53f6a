"""Serializable view of the live element tree, captured with a single page.evaluate call."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

CONTROL_SURFACE_ATTR = "data-screen-pilot"
HANDLE_ATTR = "data-screen-pilot-node"

# Walks the element tree under the content root and returns nested plain objects.
# Hidden subtrees and overlay nodes are reported without their children.
# Every other element is stamped with a handle unique to this capture; a node
# that is replaced or removed afterwards can no longer be found by it.
CAPTURE_TREE_JS = """
({ rootSelector, skipAttr, handleAttr, generation }) => {
    let counter = 0;
    function stamp(el) {
        counter += 1;
        const handle = generation + "_" + counter;
        el.setAttribute(handleAttr, handle);
        return handle;
    }

    const keptAttributes = [
        "type", "placeholder", "href", "alt", "draggable", "role",
        "aria-label", "name", "id", "class",
    ];

    function visit(el) {
        if (!(el instanceof Element)) return null;
        if (el.hasAttribute(skipAttr)) {
            return { tagName: el.tagName, controlSurface: true };
        }
        const style = window.getComputedStyle(el);
        const hidden = !style || style.display === "none" || style.visibility === "hidden";
        const rect = el.getBoundingClientRect();
        const attributes = {};
        for (const name of keptAttributes) {
            const value = el.getAttribute(name);
            if (value !== null) attributes[name] = value;
        }
        const node = {
            tagName: el.tagName,
            text: (el.textContent || "").trim(),
            attributes,
            box: { x: rect.x, y: rect.y, width: rect.width, height: rect.height },
            hidden,
            scroll: {
                scrollWidth: el.scrollWidth || 0,
                scrollHeight: el.scrollHeight || 0,
                clientWidth: el.clientWidth || 0,
                clientHeight: el.clientHeight || 0,
            },
            handle: stamp(el),
            children: [],
        };
        if (el.tagName === "SELECT") {
            node.options = Array.from(el.options).map((o) => ({
                value: o.value,
                text: (o.text || "").trim(),
            }));
        }
        if (hidden) return node;
        for (const child of Array.from(el.children)) {
            const serialized = visit(child);
            if (serialized) node.children.push(serialized);
        }
        return node;
    }

    return visit(document.querySelector(rootSelector) || document.body);
}
"""


@dataclass
class DomNode:
    tag_name: str
    text: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    box: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    hidden: bool = False
    control_surface: bool = False
    scroll_width: float = 0.0
    scroll_height: float = 0.0
    client_width: float = 0.0
    client_height: float = 0.0
    options: List[Tuple[str, str]] = field(default_factory=list)
    handle: Optional[str] = None
    children: List["DomNode"] = field(default_factory=list)

    @property
    def tag(self) -> str:
        return (self.tag_name or "").upper()

    @property
    def input_type(self) -> str:
        # Inputs without a declared subtype behave as plain text fields.
        return (self.attributes.get("type") or "text").strip().lower()

    @property
    def is_draggable(self) -> bool:
        return (self.attributes.get("draggable") or "").strip().lower() == "true"

    @property
    def is_scrollable(self) -> bool:
        return self.scroll_height > self.client_height or self.scroll_width > self.client_width

    @property
    def is_zero_size(self) -> bool:
        return self.box[2] == 0 and self.box[3] == 0

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["DomNode"]:
        """Rebuild a node (and its subtree) from the capture script output.

        Entries that are not objects or carry no tag name yield None; malformed
        children are dropped without failing the parent.
        """

        if not isinstance(payload, dict):
            return None
        tag_name = payload.get("tagName")
        if not isinstance(tag_name, str) or not tag_name:
            return None

        try:
            box_raw = payload.get("box") or {}
            box = (
                float(box_raw.get("x", 0.0) or 0.0),
                float(box_raw.get("y", 0.0) or 0.0),
                float(box_raw.get("width", 0.0) or 0.0),
                float(box_raw.get("height", 0.0) or 0.0),
            )
            scroll = payload.get("scroll") or {}
            scroll_width = float(scroll.get("scrollWidth", 0.0) or 0.0)
            scroll_height = float(scroll.get("scrollHeight", 0.0) or 0.0)
            client_width = float(scroll.get("clientWidth", 0.0) or 0.0)
            client_height = float(scroll.get("clientHeight", 0.0) or 0.0)
        except (AttributeError, TypeError, ValueError) as exc:
            logging.debug("dom_node_malformed tag=%s reason=%r", tag_name, exc)
            return None

        attributes = {
            str(key): str(value)
            for key, value in (payload.get("attributes") or {}).items()
            if value is not None
        }
        options = [
            (str(opt.get("value", "")), str(opt.get("text", "")))
            for opt in payload.get("options") or []
            if isinstance(opt, dict)
        ]
        children = [
            child
            for child in (cls.from_dict(raw) for raw in payload.get("children") or [])
            if child is not None
        ]

        return cls(
            tag_name=tag_name,
            text=str(payload.get("text") or "").strip(),
            attributes=attributes,
            box=box,
            hidden=bool(payload.get("hidden", False)),
            control_surface=bool(payload.get("controlSurface", False)),
            scroll_width=scroll_width,
            scroll_height=scroll_height,
            client_width=client_width,
            client_height=client_height,
            options=options,
            handle=payload.get("handle") or None,
            children=children,
        )
