from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from ..config import Settings, settings as default_settings
from ..models import InteractionOutcome, InteractionRequest, ScreenItem
from .browser import BrowserSession
from .errors import AutomationError
from .executor import InteractionExecutor
from .script import ScriptStep, find_item, load_script

_run_lock: asyncio.Lock | None = None
_run_lock_loop: asyncio.AbstractEventLoop | None = None


def _get_run_lock() -> asyncio.Lock:
    """Ensure only one automation script executes per event loop.

    The lock is recreated if a new event loop is used (e.g., when calling
    from the CLI via asyncio.run).
    """

    global _run_lock, _run_lock_loop

    loop = asyncio.get_running_loop()
    if _run_lock is None or _run_lock_loop is not loop:
        _run_lock = asyncio.Lock()
        _run_lock_loop = loop

    return _run_lock


class AutomationEngine:
    """Entry points shared by the API, the CLI and the in-page trigger key."""

    def __init__(
        self,
        session,
        executor: InteractionExecutor | None = None,
        *,
        trigger_script: Sequence[ScriptStep] | None = None,
        config: Settings | None = None,
    ) -> None:
        self.session = session
        self.config = config or default_settings
        self.executor = executor or InteractionExecutor(session, config=self.config)
        if trigger_script is None and self.config.trigger_script:
            trigger_script = load_script(self.config.trigger_script)
        self.trigger_script: List[ScriptStep] = list(trigger_script or [])
        self._trigger_task: asyncio.Task | None = None

    async def start(self, url: str | None = None) -> List[ScreenItem]:
        await self.session.bind_listeners(on_trigger=self._on_trigger_key, on_pointer=self.executor.record_pointer)
        await self.session.goto(url)
        await self.session.install_overlay()
        return await self.snapshot()

    async def snapshot(self) -> List[ScreenItem]:
        return await self.executor.snapshot()

    async def request(self, request: InteractionRequest) -> InteractionOutcome:
        return await self.executor.execute(request)

    def cancel(self) -> bool:
        return self.executor.cancel()

    def _on_trigger_key(self) -> None:
        # Page bindings return their value to the page, so the task handle stays here.
        self.handle_trigger()

    def handle_trigger(self) -> Optional[asyncio.Task]:
        if self.executor.automating or (self._trigger_task and not self._trigger_task.done()):
            logging.debug("trigger_ignored reason=busy")
            return None
        if not self.trigger_script:
            logging.info("trigger_ignored reason=no_script")
            return None
        logging.info("trigger_received steps=%s", len(self.trigger_script))
        self._trigger_task = asyncio.get_running_loop().create_task(self.run_script(self.trigger_script))
        self._trigger_task.add_done_callback(_log_trigger_result)
        return self._trigger_task

    async def run_script(self, steps: Sequence[ScriptStep]) -> List[InteractionOutcome]:
        outcomes: List[InteractionOutcome] = []
        async with _get_run_lock():
            for index, step in enumerate(steps):
                target_id = None
                if step.match is not None:
                    items = self.executor.current_snapshot or await self.snapshot()
                    item = find_item(items, step.match)
                    if item is None:
                        logging.warning("script_step_unmatched step=%s match=%s", index, step.match.model_dump())
                        outcomes.append(
                            InteractionOutcome(
                                kind=step.kind,
                                status="aborted",
                                error=f"no item matches step {index}",
                                snapshot_size=len(items),
                            )
                        )
                        continue
                    target_id = item.id
                try:
                    outcome = await self.request(step.to_request(target_id))
                except AutomationError as exc:
                    logging.warning("script_step_rejected step=%s kind=%s reason=%s", index, step.kind, exc)
                    outcomes.append(
                        InteractionOutcome(
                            kind=step.kind,
                            target_id=target_id,
                            status="aborted",
                            error=str(exc),
                            snapshot_size=len(self.executor.current_snapshot),
                        )
                    )
                    continue
                logging.info("script_step_done step=%s kind=%s status=%s", index, step.kind, outcome.status)
                outcomes.append(outcome)
        return outcomes


def _log_trigger_result(task: asyncio.Task) -> None:
    if task.cancelled():
        logging.info("trigger_run_cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logging.error("trigger_run_failed reason=%r", exc)
        return
    statuses = [outcome.status for outcome in task.result()]
    logging.info("trigger_run_finished steps=%s statuses=%s", len(statuses), statuses)


async def run_script_async(
    script_path: str,
    url: str | None = None,
    browser_factory: Callable[[], BrowserSession] = BrowserSession,
    config: Settings | None = None,
) -> List[InteractionOutcome]:
    """Open the page, run a script file once, and close the browser."""

    steps = load_script(script_path)
    async with browser_factory() as session:
        engine = AutomationEngine(session, trigger_script=steps, config=config)
        await engine.start(url)
        return await engine.run_script(steps)


def run_script_blocking(script_path: str, url: str | None = None) -> List[InteractionOutcome]:
    """Synchronous wrapper for CLI usage."""

    return asyncio.run(run_script_async(script_path, url))
