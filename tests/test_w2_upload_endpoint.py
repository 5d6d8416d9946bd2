import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_stutax.db")

from fastapi.testclient import TestClient  # noqa: E402

from backend import app as app_module  # noqa: E402
from backend.routers import w2 as w2_router  # noqa: E402
from extraction.vision import VisionError  # noqa: E402

client = TestClient(app_module.app)

MODEL_REPLY = """Here is the extracted data:
```json
{
  "tax_year": 2024,
  "identification_and_address": {"box_a_employee_ssn": "123-45-6789"},
  "federal_wages_and_taxes": {
    "box_1_wages_tips_other_comp": "48500.00",
    "box_12_items": [{"code": "D", "amount": "1500"}, {"code": null, "amount": 3}]
  }
}
```
Let me know if you need anything else."""


def _upload(content=b"fake-image-bytes", filename="w2.jpg"):
    return client.post("/api/forms/w2/upload", files={"file": (filename, content, "image/jpeg")})


def test_upload_returns_normalized_record(monkeypatch):
    captured = {}

    def fake_analyze(image_bytes, *, filename, mime_type, settings):
        captured["filename"] = filename
        captured["mime_type"] = mime_type
        return MODEL_REPLY

    monkeypatch.setattr(w2_router, "analyze_w2_image", fake_analyze)

    resp = _upload()
    assert resp.status_code == 200
    data = resp.json()
    assert data["tax_year"] == 2024
    assert data["identification_and_address"]["box_a_employee_ssn"] == "123-45-6789"
    assert data["federal_wages_and_taxes"]["box_1_wages_tips_other_comp"] == 48500.0
    assert data["federal_wages_and_taxes"]["box_12_items"] == [{"code": "D", "amount": 1500.0}]
    assert data["state_and_local"] == {"entries": []}
    assert captured == {"filename": "w2.jpg", "mime_type": "image/jpeg"}


def test_upload_missing_or_empty_file():
    assert client.post("/api/forms/w2/upload").status_code == 400
    assert _upload(content=b"").status_code == 400


def test_upload_unparseable_reply_is_422(monkeypatch):
    monkeypatch.setattr(w2_router, "analyze_w2_image", lambda *a, **k: "Sorry, the image is too blurry.")
    resp = _upload()
    assert resp.status_code == 422
    assert "Failed to extract valid JSON" in resp.json()["detail"]


def test_upload_vision_failure_is_502(monkeypatch):
    def failing(*args, **kwargs):
        raise VisionError("Set GEMINI_API_KEY")

    monkeypatch.setattr(w2_router, "analyze_w2_image", failing)
    assert _upload().status_code == 502


def test_upload_too_large(monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "4")
    monkeypatch.setattr(w2_router, "analyze_w2_image", lambda *a, **k: "{}")
    assert _upload(content=b"12345").status_code == 413


def test_sample_w2(monkeypatch, tmp_path):
    monkeypatch.setenv("FORMS_DIR", str(tmp_path))
    assert client.get("/api/forms/w2/sample").status_code == 404

    (tmp_path / "Sample_W2.jpg").write_bytes(b"\xff\xd8jpeg")
    resp = client.get("/api/forms/w2/sample")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/jpeg"
    assert resp.content == b"\xff\xd8jpeg"
