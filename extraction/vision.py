"""Vision-model calls that turn a W-2 image into raw model text.

The model reply is returned untouched; recovering JSON from it is the job of
``extraction.json_extractor``. Two providers are supported:

- Gemini through ``google-generativeai`` (default).
- A remote HTTP endpoint (``VISION_ENDPOINT``) that accepts a multipart upload and
  answers with ``{"raw_model_output": "..."}``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from extraction.prompt import W2_EXTRACTION_PROMPT

logger = logging.getLogger(__name__)

try:
    import requests  # type: ignore
except Exception:  # pragma: no cover - optional dependency for remote vision endpoint
    requests = None

DEFAULT_VISION_MODEL = "gemini-2.5-flash"


class VisionError(RuntimeError):
    """Raised when the vision model cannot be reached or is not configured."""


class GeminiVisionClient:
    def __init__(self, api_key: Optional[str], model: str = DEFAULT_VISION_MODEL) -> None:
        if not api_key:
            raise VisionError("Set GEMINI_API_KEY in the environment to analyze W-2 images.")
        try:
            import google.generativeai as genai
        except Exception as exc:
            raise VisionError("google-generativeai is required for Gemini vision calls.") from exc
        genai.configure(api_key=api_key)
        self._model_name = model
        self._model = genai.GenerativeModel(model_name=model)

    def generate_text(self, image_bytes: bytes, mime_type: str, prompt: str = W2_EXTRACTION_PROMPT) -> str:
        parts: list[Any] = [prompt, {"mime_type": mime_type, "data": image_bytes}]
        try:
            resp = self._model.generate_content(parts)
        except Exception as exc:
            logger.warning("Gemini vision call failed: %s", exc)
            raise VisionError(f"Vision model call failed: {exc}") from exc
        return (getattr(resp, "text", "") or "").strip()

    def label(self) -> str:
        return f"Gemini ({self._model_name})"


def call_remote_vision(
    endpoint: str,
    image_bytes: bytes,
    *,
    filename: str,
    mime_type: str,
    prompt: str = W2_EXTRACTION_PROMPT,
    timeout: int = 60,
) -> str:
    """
    Send the image to a remote vision endpoint.

    Expected response JSON:
    {
      "raw_model_output": "..."   # or "text"
    }
    """
    if requests is None:
        raise VisionError("requests library is required for remote vision calls.")
    files = {"file": (filename, image_bytes, mime_type)}
    try:
        resp = requests.post(endpoint, files=files, data={"prompt": prompt}, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Remote vision call to %s failed: %s", endpoint, exc)
        raise VisionError(f"Remote vision endpoint failed: {exc}") from exc
    try:
        data = resp.json()
    except ValueError as exc:
        logger.error("Remote vision endpoint returned non-JSON response: %s", resp.text[:500])
        raise VisionError("Remote vision endpoint returned invalid JSON") from exc
    if not isinstance(data, dict):
        raise VisionError("Remote vision endpoint returned an unexpected payload")
    return str(data.get("raw_model_output") or data.get("text") or "")


def analyze_w2_image(
    image_bytes: bytes,
    *,
    filename: str,
    mime_type: Optional[str],
    settings: Mapping[str, Any],
) -> str:
    """Return the raw text reply of the configured vision model for a W-2 image."""
    mime = mime_type or "image/jpeg"
    endpoint = settings.get("vision_endpoint")
    if endpoint:
        logger.info("Sending %s (%d bytes) to remote vision endpoint", filename, len(image_bytes))
        return call_remote_vision(
            endpoint,
            image_bytes,
            filename=filename,
            mime_type=mime,
            timeout=int(settings.get("vision_http_timeout") or 60),
        )

    client = GeminiVisionClient(settings.get("gemini_api_key"), model=settings.get("vision_model") or DEFAULT_VISION_MODEL)
    logger.info("Sending %s (%d bytes) to %s", filename, len(image_bytes), client.label())
    return client.generate_text(image_bytes, mime)


def describe_provider(settings: Mapping[str, Any]) -> Dict[str, Any]:
    if settings.get("vision_endpoint"):
        return {"provider": "remote", "endpoint": settings["vision_endpoint"]}
    return {"provider": "gemini", "model": settings.get("vision_model") or DEFAULT_VISION_MODEL}
