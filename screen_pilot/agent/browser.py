from __future__ import annotations

import logging
import os
from typing import Any, Callable, Optional, Tuple

from playwright.async_api import (
    BrowserContext,
    Locator,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from ..config import Settings, settings as default_settings
from .dom_tree import CAPTURE_TREE_JS, CONTROL_SURFACE_ATTR, HANDLE_ATTR, DomNode
from .overlay import POINTER_BINDING, TRIGGER_BINDING, build_listeners_script, build_overlay_script

Box = Tuple[float, float, float, float]

_APPEND_VALUE_JS = """
(el, ch) => {
    const proto = el instanceof HTMLTextAreaElement ? HTMLTextAreaElement.prototype : HTMLInputElement.prototype;
    const descriptor = Object.getOwnPropertyDescriptor(proto, "value");
    const next = (el.value || "") + ch;
    if (descriptor && descriptor.set) {
        descriptor.set.call(el, next);
    } else {
        el.value = next;
    }
}
"""

_SELECT_VALUE_JS = """
(el, value) => {
    const options = Array.from(el.options || []);
    const index = options.findIndex((o) => o.value === value);
    if (index < 0) return false;
    el.selectedIndex = index;
    return true;
}
"""


class LiveElement:
    """The node effects the executor needs, expressed on a Playwright locator."""

    def __init__(self, locator: Locator) -> None:
        self.locator = locator

    async def scroll_into_view(self) -> None:
        await self.locator.evaluate("(el) => el.scrollIntoView({ behavior: 'smooth', block: 'center' })")

    async def bounding_box(self) -> Optional[Box]:
        box = await self.locator.bounding_box()
        if not box:
            return None
        return (box.get("x", 0.0), box.get("y", 0.0), box.get("width", 0.0), box.get("height", 0.0))

    async def click(self) -> None:
        await self.locator.evaluate("(el) => el.click()")

    async def dispatch(self, event_type: str, init: Optional[dict[str, Any]] = None) -> None:
        await self.locator.dispatch_event(event_type, init or {})

    async def append_value(self, ch: str) -> None:
        await self.locator.evaluate(_APPEND_VALUE_JS, ch)

    async def focus(self) -> None:
        await self.locator.focus()

    async def set_scroll(self, top: float, left: float) -> None:
        await self.locator.evaluate(
            "(el, pos) => { el.scrollTop = pos.top; el.scrollLeft = pos.left; }",
            {"top": top, "left": left},
        )

    async def select_value(self, value: str) -> bool:
        return bool(await self.locator.evaluate(_SELECT_VALUE_JS, value))


class BrowserSession:
    def __init__(self, start_url: str | None = None, config: Settings | None = None) -> None:
        self.config = config or default_settings
        self.start_url = start_url or self.config.start_url
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self._playwright: Playwright | None = None
        self._capture_generation = 0
        self.user_data_dir = os.path.expanduser(self.config.user_data_dir)

    async def __aenter__(self) -> "BrowserSession":
        self._playwright = await async_playwright().start()
        self.context = await self._playwright.chromium.launch_persistent_context(
            user_data_dir=self.user_data_dir,
            headless=self.config.headless,
        )
        self.page = await self.context.new_page()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.context:
            await self.context.close()
        if self._playwright:
            await self._playwright.stop()

    def _require_page(self) -> Page:
        if not self.page:
            raise RuntimeError("Browser page is not initialized. Use within an async context manager.")
        return self.page

    async def goto(self, url: str | None = None, wait_ms: int = 500) -> None:
        page = self._require_page()
        await page.goto(url or self.start_url, wait_until="domcontentloaded", timeout=30000)
        try:
            await page.wait_for_load_state("networkidle", timeout=5000)
        except PlaywrightTimeoutError:
            logging.info("networkidle_timeout url=%s", page.url)

        if wait_ms > 0:
            await page.wait_for_timeout(wait_ms)

    async def bind_listeners(
        self,
        on_trigger: Callable[[], Any],
        on_pointer: Callable[[float, float], Any],
    ) -> None:
        """Route real pointer moves and the trigger key from the page to Python callbacks.

        Must run before ``goto`` so the init script is attached to the first document.
        """

        page = self._require_page()
        await page.expose_function(TRIGGER_BINDING, on_trigger)
        await page.expose_function(POINTER_BINDING, on_pointer)
        await page.add_init_script(build_listeners_script(self.config.trigger_key))

    async def install_overlay(self) -> None:
        if not self.config.overlay_enabled:
            return
        script = build_overlay_script()
        page = self._require_page()
        # Init script re-creates the overlay after navigations triggered by clicks.
        await page.add_init_script(script)
        await self._evaluate_quietly(script)

    async def capture_dom_tree(self) -> Optional[DomNode]:
        page = self._require_page()
        self._capture_generation += 1
        try:
            payload = await page.evaluate(
                CAPTURE_TREE_JS,
                {
                    "rootSelector": self.config.content_root_selector,
                    "skipAttr": CONTROL_SURFACE_ATTR,
                    "handleAttr": HANDLE_ATTR,
                    "generation": self._capture_generation,
                },
            )
        except Exception as exc:  # pragma: no cover - depends on runtime browser
            logging.warning("dom_capture_failed reason=%s", exc)
            return None
        return DomNode.from_dict(payload)

    async def element(self, handle: str) -> Optional[LiveElement]:
        page = self._require_page()
        locator = page.locator(f'[{HANDLE_ATTR}="{handle}"]')
        try:
            count = await locator.count()
        except Exception as exc:
            logging.debug("element_lookup_failed handle=%s reason=%r", handle, exc)
            return None
        if count != 1:
            # Zero means the node is gone; more than one means it was cloned with its handle.
            logging.debug("element_lookup_miss handle=%s count=%s", handle, count)
            return None
        return LiveElement(locator.first)

    async def move_cursor(self, x: float, y: float) -> None:
        await self._evaluate_quietly("([x, y]) => window.__screenPilotMoveCursor?.(x, y)", [x, y])

    async def set_cursor_mode(self, mode: str) -> None:
        await self._evaluate_quietly("(mode) => window.__screenPilotSetMode?.(mode)", mode)

    async def set_automating(self, flag: bool) -> None:
        await self._evaluate_quietly("(flag) => window.__screenPilotSetAutomating?.(flag)", flag)

    async def set_status(self, text: str) -> None:
        await self._evaluate_quietly("(text) => window.__screenPilotSetStatus?.(text)", text)

    async def _evaluate_quietly(self, script: str, arg: Any = None) -> None:
        # Overlay calls never raise: the page may be navigating or already closed.
        if not self.page:
            return
        try:
            if arg is None:
                await self.page.evaluate(script)
            else:
                await self.page.evaluate(script, arg)
        except Exception as exc:
            logging.debug("overlay_update_failed reason=%r", exc)

    def __repr__(self) -> str:
        return f"BrowserSession(start_url={self.start_url!r}, headless={self.config.headless})"
