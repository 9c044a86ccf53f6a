import pytest
from fastapi.testclient import TestClient

from fake_session import SEARCH_INPUT, FakeBrowserSession, fast_settings, storefront

from screen_pilot.agent.executor import ExecutorState
from screen_pilot.agent.orchestrator import AutomationEngine
from screen_pilot.server.api import app, get_engine


@pytest.fixture
def engine_client():
    tree, elements = storefront()
    engine = AutomationEngine(FakeBrowserSession(tree, elements), config=fast_settings())
    app.dependency_overrides[get_engine] = lambda: engine
    # No context manager: the lifespan would launch a real browser.
    client = TestClient(app)
    yield client, engine, elements
    app.dependency_overrides.clear()


def _search_input_id(client):
    items = client.get("/api/snapshot").json()
    return next(item["id"] for item in items if item["tagName"] == "INPUT")


def test_snapshot_is_camel_case_json(engine_client):
    client, engine, _ = engine_client

    response = client.get("/api/snapshot")

    assert response.status_code == 200
    items = response.json()
    assert {item["type"] for item in items} == {"info", "action", "container"}
    search = next(item for item in items if item["tagName"] == "INPUT")
    assert search["placeholder"] == "Search..."
    assert "type-text" in search["possibleInteractions"]
    assert all("childIds" in item for item in items if item["type"] == "container")


def test_interaction_returns_outcome(engine_client):
    client, engine, elements = engine_client
    target = _search_input_id(client)

    response = client.post(
        "/api/interactions",
        json={"targetId": target, "kind": "type-text", "params": {"text": "ok"}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["targetId"] == target
    assert body["snapshotSize"] > 0
    assert elements[SEARCH_INPUT].value == "ok"


def test_invalid_request_is_400(engine_client):
    client, _, _ = engine_client

    response = client.post("/api/interactions", json={"kind": "click"})

    assert response.status_code == 400


def test_busy_engine_is_409(engine_client):
    client, engine, _ = engine_client
    target = _search_input_id(client)
    engine.executor.state = ExecutorState.PERFORMING

    response = client.post("/api/interactions", json={"targetId": target, "kind": "click"})

    assert response.status_code == 409


def test_unknown_kind_is_ignored(engine_client):
    client, _, _ = engine_client

    response = client.post("/api/interactions", json={"targetId": 1, "kind": "teleport"})

    assert response.status_code == 200
    assert response.json()["status"] == "ignored"


def test_state_and_cancel(engine_client):
    client, engine, _ = engine_client
    engine.executor.record_pointer(12, 34)

    state = client.get("/api/state").json()
    cancelled = client.post("/api/cancel").json()

    assert state["state"] == "idle"
    assert state["automating"] is False
    assert state["cursorMode"] == "pointer"
    assert state["cursorX"] == 0.0
    assert "snapshotSize" in state and "cursor_mode" not in state
    assert cancelled == {"cancelled": False}


def test_control_panel_and_form_submission(engine_client):
    client, engine, elements = engine_client
    target = _search_input_id(client)

    page = client.get("/")
    submitted = client.post(
        "/run_from_ui",
        data={"kind": "focus", "target_id": str(target), "text": "", "value": "", "duration_ms": ""},
        follow_redirects=False,
    )
    rejected = client.post("/run_from_ui", data={"kind": "click", "target_id": ""})

    assert page.status_code == 200
    assert "Search..." in page.text
    assert submitted.status_code == 303
    assert elements[SEARCH_INPUT].focused
    assert rejected.status_code == 400
    assert "Could not run interaction" in rejected.text


def test_missing_engine_is_503():
    client = TestClient(app)

    assert client.get("/api/state").status_code == 503


def test_form_with_non_numeric_fields_re_renders_with_error(engine_client):
    client, engine, elements = engine_client

    bad_target = client.post("/run_from_ui", data={"kind": "click", "target_id": "abc"})
    bad_duration = client.post("/run_from_ui", data={"kind": "wait", "duration_ms": "-5"})
    word_duration = client.post("/run_from_ui", data={"kind": "wait", "duration_ms": "soon"})

    for response in (bad_target, bad_duration, word_duration):
        assert response.status_code == 400
        assert "Could not run interaction" in response.text
    assert engine.executor.state is ExecutorState.IDLE
