"""FastAPI service behind the StuTax assistant.

Exposes user profiles, W-2 image extraction (vision model -> JSON recovery ->
normalized record) and the Form 8843 / 1040-NR fill endpoints.
"""

from __future__ import annotations

import logging
import os
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.settings import ROOT_DIR, get_settings

# Ensure the repo root (extraction, normalization, schemas) is importable when deployed.
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from backend.db import init_db  # noqa: E402
from backend.routers import forms as forms_router  # noqa: E402
from backend.routers import users as users_router  # noqa: E402
from backend.routers import w2 as w2_router  # noqa: E402
from extraction.vision import describe_provider  # noqa: E402

logger = logging.getLogger("stutax-api")
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

settings = get_settings()

app = FastAPI(
    title="StuTax API",
    description="Profiles, W-2 extraction and nonresident tax form filling.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings["allowed_origins"] or ["*"],
    allow_origin_regex=settings["allow_origin_regex"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users_router.router)
app.include_router(w2_router.router)
app.include_router(forms_router.router)


@app.on_event("startup")
async def startup_event() -> None:
    init_db()
    logger.info("Vision provider: %s", describe_provider(settings))
    logger.info("Serving blank forms from %s", settings["forms_dir"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "vision": describe_provider(get_settings())}
