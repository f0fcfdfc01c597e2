import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeImage, FakeLLM, FakeVideo
from config import settings
from jobs.error_log import ErrorLog
from jobs.errors import RemoteCallFailure
from jobs.orchestrator import JobOrchestrator
from main import app, setup_state


@pytest.fixture
def fakes():
    return {
        "llm": FakeLLM(chunks=["AI Studio ", "creates visuals."]),
        "image": FakeImage(),
        "video": FakeVideo(done_after=1),
    }


@pytest.fixture
def client(fakes):
    orchestrator = JobOrchestrator(ErrorLog(), poll_interval=0, max_polls=5, **fakes)
    setup_state(app, orchestrator)
    with TestClient(app) as c:
        yield c
    app.state.widgets = None


@pytest.fixture
def disabled_client(monkeypatch):
    monkeypatch.setattr(settings, "api_key", "")
    app.state.widgets = None
    with TestClient(app) as c:
        yield c


# ── Server ──────────────────────────────────────────────

def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["message"] == "FulxerPro server is running perfectly"
    assert data["uptime"] >= 0


def test_status(client: TestClient):
    assert client.get("/api/status").json() == {
        "platform": "FulxerPro",
        "version": "1.0.0",
        "status": "active",
        "server": "AWS EC2",
        "port": settings.port,
    }


def test_dashboard_page(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert "FULXERPRO INVESTORS" in response.text


def test_dashboard_escapes_values_and_disables_busy_buttons(client: TestClient):
    page = client.get("/").text
    assert ".replace(/</g, '&lt;')" in page
    assert "this.esc(c.alt)" in page
    assert 'data-name="\' + name + \'"' in page
    assert "onclick=\"App.follow" not in page
    assert "DOMPurify.sanitize" in page
    assert "'studio-output': ['btn-image', 'btn-video']" in page
    assert "if (button) button.disabled = true;" in page


# ── Regions and admin ───────────────────────────────────

def test_regions_start_empty(client: TestClient):
    regions = client.get("/api/regions").json()["regions"]
    assert len(regions) == 6
    assert {r["state"] for r in regions} == {"empty"}


def test_unknown_region_is_404(client: TestClient):
    assert client.get("/api/regions/nope").status_code == 404


def test_error_log_lists_and_clears(client: TestClient, fakes):
    fakes["image"].error = RemoteCallFailure("No images returned from Imagen")
    client.post("/api/studio/image", json={"prompt": "Show growth trend"})

    errors = client.get("/api/admin/errors").json()
    assert errors["count"] == 1
    assert errors["errors"][0]["context"] == "AI Studio"
    assert errors["errors"][0]["message"] == "No images returned from Imagen"

    assert client.delete("/api/admin/errors").json() == {"status": "cleared", "removed": 1}
    assert client.get("/api/admin/errors").json()["count"] == 0


# ── Studio ──────────────────────────────────────────────

def test_studio_image_then_edit(client: TestClient, fakes):
    response = client.post("/api/studio/image", json={"prompt": "Show growth trend", "aspect_ratio": "16:9"})
    assert response.status_code == 200
    data = response.json()
    assert data["job"]["status"] == "done"
    assert data["edit_controls"] is True
    assert data["regions"]["studio-output"]["content"]["type"] == "image"
    assert fakes["image"].generate_calls[0]["aspect_ratio"] == "16:9"

    response = client.post("/api/studio/edit", json={"prompt": "Make the bars green"})
    assert response.json()["regions"]["studio-edit"]["content"]["status"] == "applied"


@pytest.mark.parametrize(
    "path,body",
    [
        ("/api/studio/image", {"prompt": "   "}),
        ("/api/studio/image", {"prompt": "Chart", "aspect_ratio": "4:3"}),
        ("/api/studio/edit", {"prompt": "Make it blue"}),
        ("/api/studio/video", {"prompt": ""}),
    ],
)
def test_rejected_studio_input_is_400(client: TestClient, fakes, path, body):
    response = client.post(path, json=body)
    assert response.status_code == 400
    assert fakes["image"].generate_calls == []
    assert client.get("/api/admin/errors").json()["count"] == 0


def test_video_is_accepted(client: TestClient):
    response = client.post("/api/studio/video", json={"prompt": "Animated market ticker"})
    assert response.status_code == 202
    data = response.json()
    assert data["status"] == "accepted"
    assert data["region"] == "studio-output"


def test_unknown_video_is_404(client: TestClient):
    assert client.get("/api/studio/videos/missing").status_code == 404


def test_studio_reset(client: TestClient):
    client.post("/api/studio/image", json={"prompt": "Chart"})
    data = client.post("/api/studio/reset").json()
    assert data["edit_controls"] is False
    assert data["regions"]["studio-output"]["state"] == "empty"


# ── Widgets ─────────────────────────────────────────────

def test_insights(client: TestClient, fakes):
    fakes["llm"].texts = ["- **Orbital Infrastructure**"]
    data = client.post("/api/insights").json()
    assert data["region"]["state"] == "content"
    assert data["region"]["content"]["markdown"] == "- **Orbital Infrastructure**"


def test_allocation_validation_failure_is_shown_not_raised(client: TestClient, fakes):
    fakes["llm"].texts = [json.dumps({"allocations": [{"category": "Cash", "percentage": 100}]})]
    response = client.post("/api/allocation", json={})
    assert response.status_code == 200
    data = response.json()
    assert data["job"]["error"]["category"] == "validation"
    assert data["region"]["state"] == "error"


def test_guide_loads_once(client: TestClient, fakes):
    first = client.post("/api/guide").json()
    second = client.post("/api/guide").json()
    assert first["job"]["status"] == "done"
    assert second["job"] is None
    assert len(fakes["llm"].calls) == 1


def test_traders_follow_and_analysis(client: TestClient):
    traders = client.get("/api/traders", params={"q": "chen"}).json()["traders"]
    assert [t["name"] for t in traders] == ["Marcus Chen"]

    assert client.post("/api/traders/Marcus Chen/follow").json() == {"name": "Marcus Chen", "following": True}
    assert client.post("/api/traders/Nobody/follow").status_code == 404

    data = client.post("/api/traders/Marcus Chen/analysis").json()
    assert data["region"]["content"]["title"] == "AI Trader Analysis: Marcus Chen"
    assert client.post("/api/traders/Nobody/analysis").status_code == 404


# ── Co-pilot ────────────────────────────────────────────

def test_copilot_websocket_streams_reply(client: TestClient):
    with client.websocket_connect("/ws/copilot") as ws:
        ws.send_text(json.dumps({"type": "message", "content": "What is AI Studio?"}))
        messages = [json.loads(ws.receive_text()) for _ in range(3)]

    assert [m["type"] for m in messages] == ["delta", "delta", "done"]
    assert messages[-1]["content"] == "AI Studio creates visuals."


def test_copilot_websocket_rejects_blank_message(client: TestClient):
    with client.websocket_connect("/ws/copilot") as ws:
        ws.send_text(json.dumps({"type": "message", "content": "  "}))
        message = json.loads(ws.receive_text())
    assert message == {"type": "error", "content": "Please enter a message."}


def test_copilot_conversations_are_per_connection(client: TestClient, fakes):
    with client.websocket_connect("/ws/copilot") as alice, client.websocket_connect("/ws/copilot") as bob:
        alice.send_text(json.dumps({"type": "message", "content": "Alice secret question"}))
        [alice.receive_text() for _ in range(3)]
        bob.send_text(json.dumps({"type": "message", "content": "Bob hello"}))
        replies = [json.loads(bob.receive_text()) for _ in range(3)]

    assert replies[-1] == {"type": "done", "content": "AI Studio creates visuals."}
    assert [m["text"] for m in fakes["llm"].stream_calls[1]] == ["Bob hello"]
    assert "copilot-messages" not in {r["name"] for r in client.get("/api/regions").json()["regions"]}


# ── Disabled ────────────────────────────────────────────

def test_missing_api_key_disables_ai_routes(disabled_client: TestClient):
    assert disabled_client.get("/health").status_code == 200
    assert disabled_client.post("/api/insights").status_code == 503
    assert disabled_client.post("/api/studio/image", json={"prompt": "Chart"}).status_code == 503
    assert disabled_client.get("/api/admin/errors").json()["count"] == 0
