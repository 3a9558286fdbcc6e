import base64
import importlib

import pytest
from fastapi.testclient import TestClient

from backend import app as backend_app
from backend.errors import NoImageInResponse, UpstreamFailure


@pytest.fixture
def client():
    return TestClient(backend_app.app)


@pytest.fixture
def image_json(png_bytes):
    return {"data": base64.b64encode(png_bytes).decode(), "mime_type": "image/png"}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_generate_returns_image_and_echoes_request_id(client, image_json, monkeypatch):
    calls = []

    async def fake_generate(image_b64, mime_type, prompt):
        calls.append((image_b64, mime_type, prompt))
        return "UE5H", "image/png"

    monkeypatch.setattr(backend_app, "generate_visual", fake_generate)
    r = client.post("/generate", json={"image": image_json, "prompt": "on a mug", "request_id": 7})

    assert r.status_code == 200
    assert r.json() == {"request_id": 7, "image": {"data": "UE5H", "mime_type": "image/png"}}
    assert calls == [(image_json["data"], "image/png", "on a mug")]


def test_generate_blank_prompt_is_missing_prompt(client, image_json, monkeypatch):
    async def fail(*args, **kwargs):
        raise AssertionError("service must not be called")

    monkeypatch.setattr(backend_app, "generate_visual", fail)
    r = client.post("/generate", json={"image": image_json, "prompt": "   "})

    assert r.status_code == 422
    assert r.json()["detail"]["error"] == "MissingPrompt"


def test_generate_empty_image_is_missing_input(client):
    r = client.post("/generate", json={"image": {"data": "", "mime_type": "image/png"}, "prompt": "mug"})
    assert r.status_code == 422
    assert r.json()["detail"]["error"] == "MissingInput"


def test_generate_non_image_is_unsupported(client, image_json):
    image_json["mime_type"] = "application/pdf"
    r = client.post("/generate", json={"image": image_json, "prompt": "mug"})
    assert r.status_code == 415
    assert r.json()["detail"]["error"] == "UnsupportedInput"


def test_generate_bad_base64_is_unsupported(client):
    r = client.post("/generate", json={"image": {"data": "not base64!!", "mime_type": "image/png"}, "prompt": "mug"})
    assert r.status_code == 415


@pytest.mark.parametrize("error", [NoImageInResponse("no image"), UpstreamFailure("quota exceeded")])
def test_generate_service_errors_are_502(client, image_json, monkeypatch, error):
    async def failing(*args, **kwargs):
        raise error

    monkeypatch.setattr(backend_app, "generate_visual", failing)
    r = client.post("/generate", json={"image": image_json, "prompt": "mug"})

    assert r.status_code == 502
    assert r.json()["detail"] == {"error": error.code, "message": error.message}


def test_remove_background(client, image_json, monkeypatch):
    async def fake_remove(image_b64, mime_type):
        return "Tk9CRw==", "image/png"

    monkeypatch.setattr(backend_app, "remove_background", fake_remove)
    r = client.post("/remove-background", json={"image": image_json, "request_id": 3})

    assert r.status_code == 200
    assert r.json()["image"]["data"] == "Tk9CRw=="
    assert r.json()["request_id"] == 3


def test_missing_key_prevents_start(monkeypatch):
    from config.settings import settings

    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
        importlib.reload(backend_app)


def test_data_url_is_forwarded_as_plain_base64(client, png_bytes, monkeypatch):
    seen = []

    async def fake_generate(image_b64, mime_type, prompt):
        seen.append(image_b64)
        return "UE5H", "image/png"

    monkeypatch.setattr(backend_app, "generate_visual", fake_generate)
    plain = base64.b64encode(png_bytes).decode()
    r = client.post(
        "/generate",
        json={"image": {"data": f"data:image/png;base64,{plain}", "mime_type": "image/png"}, "prompt": "mug"},
    )

    assert r.status_code == 200
    assert seen == [plain]
