
import cv2
import pytest
from fastapi.testclient import TestClient

from api.main import app
import api.routes as routes
from engine.config import Settings
from engine.orchestrator import DetectionOrchestrator
from helpers import DummyNeural, DummySource, make_pattern, wait_until


@pytest.fixture
def live_api(monkeypatch):
    nn = DummyNeural()
    nn.gate.set()
    orch = DetectionOrchestrator(Settings(PUBLISH_INTERVAL_MS=20), neural=nn)
    cams = []

    def fake_open(idx):
        cams.append(DummySource())
        return cams[-1]

    monkeypatch.setattr(routes, "orchestrator", orch)
    monkeypatch.setattr(routes, "open_camera", fake_open)
    c = TestClient(app)
    yield c, cams
    if orch.is_detecting:
        orch.stop()


def test_health(live_api):
    client, _ = live_api
    assert client.get("/health").json() == {"status": "ok"}


def test_detection_start_status_stop(live_api):
    client, cams = live_api
    r = client.post("/detection/start")
    assert r.status_code == 200
    assert r.json()["status"] == "started"
    assert client.post("/detection/start").json()["status"] == "already_running"

    assert wait_until(lambda: client.get("/detection/status").json()["detected_faces"])
    body = client.get("/detection/status", params={"mode": "fun"}).json()
    assert body["is_detecting"] is True
    assert isinstance(body["models_loaded"], bool)
    assert len(body["display_labels"]) == len(body["detected_faces"])

    r = client.post("/detection/stop")
    assert r.json()["status"] == "stopped"
    assert cams[0].released
    assert client.post("/detection/stop").json()["status"] == "not_running"
    assert client.get("/detection/status").json()["detected_faces"] == []


def test_detection_start_camera_failure(live_api, monkeypatch):
    client, _ = live_api
    def broken(idx):
        raise RuntimeError(f"Could not open camera {idx}")
    monkeypatch.setattr(routes, "open_camera", broken)
    r = client.post("/detection/start", params={"camera_index": 3})
    assert r.status_code == 503


def test_detect_image(live_api):
    client, _ = live_api
    bgr = cv2.cvtColor(make_pattern(160, 200), cv2.COLOR_RGB2BGR)
    ok, png = cv2.imencode(".png", bgr)
    assert ok
    r = client.post("/detect/image", files={"file": ("shot.png", png.tobytes(), "image/png")})
    assert r.status_code == 200
    body = r.json()
    assert (body["width"], body["height"]) == (200, 160)
    assert len(body["detected_faces"]) == 1
    box = body["detected_faces"][0]["box"]
    assert (box["x"], box["y"], box["width"], box["height"]) == (0, 0, 140, 150)
    assert body["detected_faces"][0]["landmarks"] is None


def test_detect_image_rejects_garbage(live_api):
    client, _ = live_api
    r = client.post("/detect/image", files={"file": ("x.png", b"not an image", "image/png")})
    assert r.status_code == 400
