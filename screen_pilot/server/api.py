from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from ..agent.browser import BrowserSession
from ..agent.errors import AutomationBusy, InvalidInteractionRequest
from ..agent.orchestrator import AutomationEngine
from ..models import InteractionKind, InteractionOutcome, InteractionParams, InteractionRequest, ScreenItem

BASE_DIR = Path(__file__).parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with BrowserSession() as session:
        engine = AutomationEngine(session)
        await engine.start()
        app.state.engine = engine
        yield


app = FastAPI(lifespan=lifespan)
templates = Jinja2Templates(directory=BASE_DIR / "templates")


class EngineStateResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    state: str
    automating: bool
    cursor_x: float
    cursor_y: float
    cursor_mode: str
    snapshot_size: int


class CancelResponse(BaseModel):
    cancelled: bool


def get_engine(request: Request) -> AutomationEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Automation engine is not running")
    return engine


@app.get("/api/snapshot", response_model=List[ScreenItem])
async def get_snapshot(engine: AutomationEngine = Depends(get_engine)):
    """Rebuild and return the snapshot; never served from cache."""

    return await engine.snapshot()


@app.post("/api/interactions", response_model=InteractionOutcome)
async def request_interaction(payload: InteractionRequest, engine: AutomationEngine = Depends(get_engine)):
    try:
        return await engine.request(payload)
    except InvalidInteractionRequest as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AutomationBusy as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@app.get("/api/state", response_model=EngineStateResponse)
def get_state(engine: AutomationEngine = Depends(get_engine)):
    executor = engine.executor
    return EngineStateResponse(
        state=executor.state.value,
        automating=executor.automating,
        cursor_x=executor.cursor.x,
        cursor_y=executor.cursor.y,
        cursor_mode=executor.cursor.mode,
        snapshot_size=len(executor.current_snapshot),
    )


@app.post("/api/cancel", response_model=CancelResponse)
def cancel_interaction(engine: AutomationEngine = Depends(get_engine)):
    return CancelResponse(cancelled=engine.cancel())


@app.get("/", response_class=HTMLResponse)
async def control_panel(request: Request, engine: AutomationEngine = Depends(get_engine)) -> Any:
    items = await engine.snapshot()
    return templates.TemplateResponse(
        request,
        "snapshot.html",
        {
            "items": items,
            "kinds": [kind.value for kind in InteractionKind],
            "state": engine.executor.state.value,
        },
    )


@app.post("/run_from_ui")
async def run_from_ui(
    request: Request,
    kind: str = Form(...),
    target_id: str = Form(""),
    text: Optional[str] = Form(None),
    value: Optional[str] = Form(None),
    duration_ms: str = Form(""),
    engine: AutomationEngine = Depends(get_engine),
):
    try:
        # HTML forms submit empty strings for blank number fields.
        payload = InteractionRequest(
            target_id=int(target_id) if target_id.strip() else None,
            kind=kind,
            params=InteractionParams(
                text=text or None,
                value=value or None,
                duration_ms=int(duration_ms) if duration_ms.strip() else None,
            ),
        )
        await engine.request(payload)
    except (ValueError, ValidationError, InvalidInteractionRequest, AutomationBusy) as exc:
        items = engine.executor.current_snapshot
        return templates.TemplateResponse(
            request,
            "snapshot.html",
            {
                "items": items,
                "kinds": [k.value for k in InteractionKind],
                "state": engine.executor.state.value,
                "error_message": "Could not run interaction: " + str(exc),
            },
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    return RedirectResponse(url="/", status_code=303)
