import json
from types import SimpleNamespace

import pytest

import extraction.vision as vision
from extraction.prompt import W2_EXTRACTION_PROMPT
from extraction.vision import VisionError, analyze_w2_image, call_remote_vision, describe_provider


class FakeRequestException(Exception):
    pass


class FakeResponse:
    def __init__(self, payload, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.text = text or json.dumps(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise FakeRequestException(f"HTTP {self.status_code}")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _fake_requests(post):
    return SimpleNamespace(post=post, RequestException=FakeRequestException)


def test_call_remote_vision(monkeypatch):
    captured = {}

    def fake_post(url, files=None, data=None, timeout=60):
        captured["url"] = url
        captured["files"] = files
        captured["data"] = data
        captured["timeout"] = timeout
        return FakeResponse({"raw_model_output": '```json\n{"tax_year": 2024}\n```'})

    monkeypatch.setattr(vision, "requests", _fake_requests(fake_post))

    text = call_remote_vision("http://example.com/vision", b"img", filename="w2.jpg", mime_type="image/jpeg", timeout=5)
    assert text.startswith("```json")
    assert captured["url"] == "http://example.com/vision"
    assert captured["timeout"] == 5
    assert captured["files"]["file"] == ("w2.jpg", b"img", "image/jpeg")
    assert captured["data"]["prompt"] == W2_EXTRACTION_PROMPT


def test_call_remote_vision_http_error(monkeypatch):
    monkeypatch.setattr(vision, "requests", _fake_requests(lambda *a, **k: FakeResponse({}, status_code=500)))
    with pytest.raises(VisionError):
        call_remote_vision("http://example.com/vision", b"img", filename="w2.jpg", mime_type="image/jpeg")


def test_call_remote_vision_non_json(monkeypatch):
    monkeypatch.setattr(
        vision,
        "requests",
        _fake_requests(lambda *a, **k: FakeResponse(ValueError("bad json"), text="<html>")),
    )
    with pytest.raises(VisionError):
        call_remote_vision("http://example.com/vision", b"img", filename="w2.jpg", mime_type="image/jpeg")


def test_analyze_prefers_remote_endpoint(monkeypatch):
    def fake_post(url, files=None, data=None, timeout=60):
        assert files["file"][2] == "image/jpeg"
        return FakeResponse({"text": "{}"})

    monkeypatch.setattr(vision, "requests", _fake_requests(fake_post))
    settings = {"vision_endpoint": "http://example.com/vision", "vision_http_timeout": 3}
    assert analyze_w2_image(b"img", filename="w2", mime_type=None, settings=settings) == "{}"


def test_analyze_without_key_raises():
    settings = {"vision_endpoint": None, "gemini_api_key": None, "vision_model": "gemini-2.5-flash"}
    with pytest.raises(VisionError):
        analyze_w2_image(b"img", filename="w2.jpg", mime_type="image/png", settings=settings)


def test_describe_provider():
    assert describe_provider({"vision_endpoint": "http://x"}) == {"provider": "remote", "endpoint": "http://x"}
    assert describe_provider({"vision_model": "m"}) == {"provider": "gemini", "model": "m"}
