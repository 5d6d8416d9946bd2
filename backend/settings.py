from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

ROOT_DIR = Path(__file__).resolve().parents[1]


def get_settings() -> Dict[str, Any]:
    allowed_raw = os.getenv("ALLOWED_ORIGINS", "*")
    allowed_list = [o.strip() for o in allowed_raw.split(",") if o.strip()]
    return {
        "forms_dir": os.getenv("FORMS_DIR", str(ROOT_DIR / "forms")),
        "sample_w2_filename": os.getenv("SAMPLE_W2_FILENAME", "Sample_W2.jpg"),
        "gemini_api_key": os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
        "vision_model": os.getenv("VISION_MODEL", "gemini-2.5-flash"),
        "vision_endpoint": os.getenv("VISION_ENDPOINT"),
        "vision_http_timeout": int(os.getenv("VISION_HTTP_TIMEOUT", "60")),
        "max_upload_bytes": int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
        "allowed_origins": allowed_list,
        "allow_origin_regex": os.getenv("ALLOWED_ORIGIN_REGEX", None),
    }
