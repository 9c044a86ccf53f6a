from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from ..config import Settings, settings as default_settings
from ..models import (
    InteractionKind,
    InteractionOutcome,
    InteractionParams,
    InteractionRequest,
    ScreenItem,
    parse_interaction_kind,
)
from .errors import (
    AutomationBusy,
    EffectDispatchFailure,
    InteractionCancelled,
    InvalidInteractionRequest,
    TargetNotFound,
    UnsupportedInteractionKind,
)
from .motion import CancelToken, Point, plan_cursor_path
from .snapshot_builder import SnapshotBuilder
from .state_diff import diff_snapshots

Sleep = Callable[[float], Awaitable[Any]]

CURSOR_MODES = {
    InteractionKind.CLICK: "hand",
    InteractionKind.RIGHT_CLICK: "hand",
    InteractionKind.DOUBLE_CLICK: "hand",
    InteractionKind.DRAG: "hand",
    InteractionKind.SELECT_OPTION: "hand",
    InteractionKind.TYPE_TEXT: "text",
}


class ExecutorState(str, Enum):
    IDLE = "idle"
    HOMING = "homing"
    ACQUIRING = "acquiring"
    PERFORMING = "performing"
    SETTLING = "settling"


@dataclass
class SyntheticCursor:
    x: float = 0.0
    y: float = 0.0
    mode: str = "pointer"

    @property
    def position(self) -> Point:
        return (self.x, self.y)


def validate_request(kind: InteractionKind, request: InteractionRequest) -> None:
    if kind is InteractionKind.WAIT:
        if request.target_id is not None:
            raise InvalidInteractionRequest("wait takes no target")
        return
    if request.target_id is None:
        raise InvalidInteractionRequest(f"{kind.value} requires a target")
    if kind is InteractionKind.DRAG:
        params = request.params
        has_point = params.drop_x is not None and params.drop_y is not None
        if params.drop_target_id is None and not has_point:
            raise InvalidInteractionRequest("drag requires dropTargetId or dropX/dropY")


def _center(box: Tuple[float, float, float, float]) -> Point:
    x, y, width, height = box
    return (x + width / 2, y + height / 2)


class InteractionExecutor:
    """Runs one interaction at a time against a live session while animating the synthetic cursor.

    ``session`` is a BrowserSession or anything with the same coroutine surface
    (capture_dom_tree, element, move_cursor, set_cursor_mode, set_automating,
    set_status).
    """

    def __init__(
        self,
        session,
        builder: SnapshotBuilder | None = None,
        *,
        config: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.session = session
        self.builder = builder or SnapshotBuilder()
        self.config = config or default_settings
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.state = ExecutorState.IDLE
        self.cursor = SyntheticCursor()
        self.pointer_position: Point = (0.0, 0.0)
        self.current_snapshot: List[ScreenItem] = []
        self._token: CancelToken | None = None
        self._effects = {
            InteractionKind.CLICK: self._click,
            InteractionKind.RIGHT_CLICK: self._right_click,
            InteractionKind.DOUBLE_CLICK: self._double_click,
            InteractionKind.TYPE_TEXT: self._type_text,
            InteractionKind.DRAG: self._drag,
            InteractionKind.HOVER: self._hover,
            InteractionKind.FOCUS: self._focus,
            InteractionKind.SCROLL: self._scroll,
            InteractionKind.SELECT_OPTION: self._select_option,
            InteractionKind.WAIT: self._wait,
        }

    @property
    def automating(self) -> bool:
        return self.state is not ExecutorState.IDLE

    def record_pointer(self, x: float, y: float) -> None:
        if not self.automating:
            self.pointer_position = (float(x), float(y))

    def cancel(self) -> bool:
        if self._token is None or not self.automating:
            return False
        self._token.cancel()
        logging.info("interaction_cancel_requested state=%s", self.state.value)
        return True

    async def snapshot(self) -> List[ScreenItem]:
        tree = await self.session.capture_dom_tree()
        items = self.builder.build(tree)
        self.current_snapshot = items
        logging.info("snapshot_built items=%s", len(items))
        return items

    async def execute(self, request: InteractionRequest) -> InteractionOutcome:
        kind = parse_interaction_kind(request.kind)
        if kind is None:
            error = UnsupportedInteractionKind(request.kind)
            logging.warning("interaction_ignored reason=%s", error)
            # A busy executor re-snapshots when its own interaction settles.
            items = self.current_snapshot if self.automating else await self.snapshot()
            return InteractionOutcome(
                kind=request.kind,
                target_id=request.target_id,
                status="ignored",
                error=str(error),
                snapshot_size=len(items),
            )

        validate_request(kind, request)
        if self.state is not ExecutorState.IDLE:
            raise AutomationBusy(f"interaction in progress (state={self.state.value})")

        # Homing starts synchronously so a concurrent request sees a busy executor.
        token = CancelToken()
        self._token = token
        self.state = ExecutorState.HOMING
        self.cursor = SyntheticCursor(x=self.pointer_position[0], y=self.pointer_position[1], mode="pointer")
        logging.info("interaction_started kind=%s target=%s", kind.value, request.target_id)

        status = "completed"
        error: Optional[str] = None
        try:
            await self.session.set_automating(True)
            await self.session.set_cursor_mode("pointer")
            await self.session.move_cursor(self.cursor.x, self.cursor.y)
            await self.session.set_status(f"{kind.value} -> {request.target_id}")
            await self._run(kind, request, token)
        except TargetNotFound as exc:
            status, error = "aborted", str(exc)
            logging.warning("interaction_aborted kind=%s target=%s reason=%s", kind.value, request.target_id, exc)
        except InteractionCancelled as exc:
            status, error = "cancelled", str(exc)
            logging.info("interaction_cancelled kind=%s target=%s", kind.value, request.target_id)
        except EffectDispatchFailure as exc:
            status, error = "failed", str(exc)
            logging.error("interaction_failed kind=%s target=%s reason=%s", kind.value, request.target_id, exc)
        except Exception as exc:  # noqa: BLE001
            status, error = "failed", repr(exc)
            logging.exception("interaction_error kind=%s target=%s", kind.value, request.target_id)
        finally:
            await self._settle()

        previous = self.current_snapshot
        items = await self.snapshot()
        diff = diff_snapshots(previous, items)
        logging.info(
            "interaction_finished kind=%s status=%s diff=%r score=%s",
            kind.value,
            status,
            diff.summary,
            diff.score,
        )
        return InteractionOutcome(
            kind=kind.value,
            target_id=request.target_id,
            status=status,
            error=error,
            snapshot_size=len(items),
            diff_summary=diff.summary,
        )

    async def _run(self, kind: InteractionKind, request: InteractionRequest, token: CancelToken) -> None:
        element = None
        drop = None
        if kind is not InteractionKind.WAIT:
            element = await self._resolve(request.target_id)
            if kind is InteractionKind.DRAG and request.params.drop_target_id is not None:
                drop = await self._resolve(request.params.drop_target_id)

            self.state = ExecutorState.ACQUIRING
            await self._acquire(element, request.target_id, token)

        self.state = ExecutorState.PERFORMING
        self.cursor.mode = CURSOR_MODES.get(kind, "pointer")
        await self.session.set_cursor_mode(self.cursor.mode)
        try:
            await self._effects[kind](element, request.params, token, drop=drop)
        except (InteractionCancelled, TargetNotFound):
            raise
        except Exception as exc:
            raise EffectDispatchFailure(kind.value, exc) from exc

    async def _resolve(self, item_id: Optional[int]):
        handle = self.builder.resolve(item_id)
        element = await self.session.element(handle)
        if element is None:
            raise TargetNotFound(item_id, "live node no longer present")
        return element

    async def _acquire(self, element, item_id: Optional[int], token: CancelToken) -> None:
        await element.scroll_into_view()
        await self._pause(self.config.scroll_settle_ms, token)
        # Scrolling moves the element; measure only after the settle delay.
        box = await element.bounding_box()
        if box is None:
            raise TargetNotFound(item_id, "element has no layout box")
        await self.animate_to(_center(box), token)

    async def animate_to(self, target: Point, token: CancelToken) -> None:
        frame_seconds = self.config.frame_interval_ms / 1000
        for x, y in plan_cursor_path(self.cursor.position, target, self.config.cursor_speed):
            token.raise_if_cancelled()
            self.cursor.x, self.cursor.y = x, y
            await self.session.move_cursor(x, y)
            await self._sleep(frame_seconds)

    async def _pause(self, duration_ms: float, token: CancelToken) -> None:
        token.raise_if_cancelled()
        if duration_ms > 0:
            await self._sleep(duration_ms / 1000)
        token.raise_if_cancelled()

    async def _settle(self) -> None:
        self.state = ExecutorState.SETTLING
        self.cursor.mode = "pointer"
        await self.session.set_automating(False)
        await self.session.set_cursor_mode("pointer")
        await self.session.set_status("idle")
        self._token = None
        self.state = ExecutorState.IDLE

    def _typing_delay_ms(self) -> float:
        return self.config.typing_delay_ms + self._rng.random() * self.config.typing_jitter_ms

    def _duration_ms(self, params: InteractionParams) -> float:
        if params.duration_ms is None:
            return self.config.default_pause_ms
        return params.duration_ms

    async def _click(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        await element.click()

    async def _right_click(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        await element.dispatch("contextmenu", {"button": 2})

    async def _double_click(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        for detail in (1, 2):
            await element.dispatch("mousedown", {"detail": detail})
            await element.dispatch("mouseup", {"detail": detail})
        await element.dispatch("dblclick", {"detail": 2})

    async def _type_text(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        for ch in params.text or "":
            token.raise_if_cancelled()
            await element.dispatch("keydown", {"key": ch})
            await element.append_value(ch)
            await element.dispatch("input", {"data": ch})
            await element.dispatch("keyup", {"key": ch})
            await self._pause(self._typing_delay_ms(), token)

    async def _drag(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        await element.dispatch("mousedown", {"button": 0})
        if drop is not None:
            box = await drop.bounding_box()
            if box is None:
                raise TargetNotFound(params.drop_target_id, "drop target has no layout box")
            destination = _center(box)
        else:
            destination = (float(params.drop_x), float(params.drop_y))
        await self.animate_to(destination, token)
        await (drop or element).dispatch(
            "mouseup", {"button": 0, "clientX": destination[0], "clientY": destination[1]}
        )

    async def _hover(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        await self._pause(self._duration_ms(params), token)

    async def _focus(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        await element.focus()

    async def _scroll(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        await element.set_scroll(params.top, params.left)

    async def _select_option(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        if params.value is None:
            logging.info("select_option_skipped reason=no_value")
            return
        if not await element.select_value(params.value):
            logging.info("select_option_missing value=%r", params.value)
            return
        await element.dispatch("change")

    async def _wait(self, element, params: InteractionParams, token: CancelToken, drop=None) -> None:
        await self._pause(self._duration_ms(params), token)
