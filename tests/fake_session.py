from __future__ import annotations

from typing import Optional

from screen_pilot.agent.dom_tree import DomNode
from screen_pilot.config import Settings


def fast_settings(**overrides) -> Settings:
    values = dict(
        cursor_speed=50.0,
        frame_interval_ms=0,
        scroll_settle_ms=0,
        typing_delay_ms=1,
        typing_jitter_ms=0,
        default_pause_ms=0,
        trigger_script=None,
    )
    values.update(overrides)
    return Settings(**values)


def node(tag: str, text: str = "", *children: DomNode, box=(0.0, 0.0, 100.0, 20.0), handle=None, **kwargs) -> DomNode:
    return DomNode(tag_name=tag, text=text, box=box, handle=handle, children=list(children), **kwargs)


class FakeElement:
    def __init__(self, box=(0.0, 0.0, 10.0, 10.0), value: str = "", options=None, fail_on: Optional[str] = None):
        self.box = box
        self.value = value
        self.options = list(options or [])
        self.fail_on = fail_on
        self.events: list[tuple[str, dict]] = []
        self.clicks = 0
        self.focused = False
        self.scroll = (0.0, 0.0)
        self.scrolled_into_view = 0
        self.selected: Optional[str] = None

    def _maybe_fail(self, name: str) -> None:
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    def event_types(self) -> list[str]:
        return [event for event, _ in self.events]

    async def scroll_into_view(self):
        self.scrolled_into_view += 1

    async def bounding_box(self):
        return self.box

    async def click(self):
        self._maybe_fail("click")
        self.clicks += 1
        self.events.append(("click", {}))

    async def dispatch(self, event_type, init=None):
        self._maybe_fail(event_type)
        self.events.append((event_type, dict(init or {})))

    async def append_value(self, ch):
        self.value += ch

    async def focus(self):
        self.focused = True

    async def set_scroll(self, top, left):
        self.scroll = (top, left)

    async def select_value(self, value):
        if any(option_value == value for option_value, _ in self.options):
            self.selected = value
            return True
        return False


class FakeBrowserSession:
    def __init__(self, tree: Optional[DomNode] = None, elements: Optional[dict[str, FakeElement]] = None):
        self.tree = tree
        self.elements = elements or {}
        self.captures = 0
        self.cursor_moves: list[tuple[float, float]] = []
        self.modes: list[str] = []
        self.automating_flags: list[bool] = []
        self.statuses: list[str] = []
        self.url = None
        self.overlay_installed = False
        self.on_trigger = None
        self.on_pointer = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def capture_dom_tree(self):
        self.captures += 1
        return self.tree

    async def element(self, handle):
        return self.elements.get(handle)

    async def move_cursor(self, x, y):
        self.cursor_moves.append((x, y))

    async def set_cursor_mode(self, mode):
        self.modes.append(mode)

    async def set_automating(self, flag):
        self.automating_flags.append(flag)

    async def set_status(self, text):
        self.statuses.append(text)

    async def bind_listeners(self, on_trigger, on_pointer):
        self.on_trigger = on_trigger
        self.on_pointer = on_pointer

    async def goto(self, url=None, wait_ms: int = 0):
        self.url = url

    async def install_overlay(self):
        self.overlay_installed = True


SEARCH_INPUT = "1_6"
SEARCH_BUTTON = "1_7"


def buy_button(index: int) -> str:
    return f"1_{10 + index * 5}"


def storefront() -> tuple[DomNode, dict[str, FakeElement]]:
    """A small page shaped like the demo storefront, plus live elements for its controls."""

    cards = []
    for index, name in enumerate(["Record Player", "MacBook Air", "Antique Clock"], start=1):
        top = 200.0 + index * 10
        cards.append(
            node(
                "DIV",
                f"Item #{index} {name} Buy Now",
                node("IMG", "", box=(index * 220.0, top, 200.0, 120.0), attributes={"alt": f"Item #{index}"}),
                node("H3", f"Item #{index}", box=(index * 220.0, top + 130, 200.0, 20.0)),
                node("P", name, box=(index * 220.0, top + 150, 200.0, 20.0)),
                node("BUTTON", "Buy Now", box=(index * 220.0, top + 180, 80.0, 30.0), handle=buy_button(index)),
                box=(index * 220.0, top, 200.0, 220.0),
            )
        )

    tree = node(
        "BODY",
        "",
        node(
            "DIV",
            "",
            node(
                "NAV",
                "MyStore Search",
                node("DIV", "MyStore", box=(10.0, 10.0, 80.0, 30.0)),
                node(
                    "DIV",
                    "Search",
                    node(
                        "INPUT",
                        "",
                        box=(300.0, 10.0, 200.0, 30.0),
                        handle=SEARCH_INPUT,
                        attributes={"placeholder": "Search..."},
                    ),
                    node("BUTTON", "Search", box=(510.0, 10.0, 70.0, 30.0), handle=SEARCH_BUTTON),
                    box=(300.0, 10.0, 280.0, 30.0),
                ),
                box=(0.0, 0.0, 1000.0, 50.0),
            ),
            node(
                "MAIN",
                "",
                node("H2", "Featured Products", box=(10.0, 60.0, 300.0, 30.0)),
                node("DIV", "", *cards, box=(0.0, 100.0, 1000.0, 400.0)),
                box=(0.0, 50.0, 1000.0, 500.0),
            ),
            box=(0.0, 0.0, 1000.0, 600.0),
        ),
        node(
            "DIV",
            "screen-pilot: idle",
            node("BUTTON", "Run", box=(900.0, 560.0, 40.0, 20.0)),
            box=(880.0, 550.0, 100.0, 40.0),
            control_surface=True,
        ),
        node("DIV", "", box=(0.0, 0.0, 0.0, 0.0), control_surface=True),
        box=(0.0, 0.0, 1000.0, 600.0),
    )

    elements = {
        SEARCH_INPUT: FakeElement(box=(300.0, 10.0, 200.0, 30.0)),
        SEARCH_BUTTON: FakeElement(box=(510.0, 10.0, 70.0, 30.0)),
    }
    for index in range(1, 4):
        elements[buy_button(index)] = FakeElement(box=(index * 220.0, 200.0 + index * 10 + 180, 80.0, 30.0))
    return tree, elements
