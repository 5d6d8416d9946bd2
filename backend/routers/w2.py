from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from backend.settings import get_settings
from extraction import ExtractionError, extract_json_object
from extraction.vision import VisionError, analyze_w2_image
from normalization import normalize_w2

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/forms/w2", tags=["w2"])


@router.post("/upload")
async def upload_w2(
    file: Optional[UploadFile] = File(None),
    tax_year: Optional[int] = Form(None),
) -> Dict[str, Any]:
    """Read a W-2 image with the vision model and return the normalized record."""
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing file")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file uploaded.")

    settings = get_settings()
    if len(content) > settings["max_upload_bytes"]:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large.")

    filename = file.filename or "w2-upload"
    try:
        raw_text = analyze_w2_image(content, filename=filename, mime_type=file.content_type, settings=settings)
    except VisionError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    try:
        parsed = extract_json_object(raw_text)
    except ExtractionError as exc:
        logger.warning("Model reply for %s had no JSON (%d chars)", filename, exc.input_size)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    record = normalize_w2(parsed, default_tax_year=tax_year)
    return record.to_document_dict()


@router.get("/sample")
def sample_w2() -> FileResponse:
    settings = get_settings()
    path = Path(settings["forms_dir"]) / settings["sample_w2_filename"]
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sample W-2 not found")
    return FileResponse(
        path,
        media_type="image/jpeg",
        filename=path.name,
        headers={"Cache-Control": "public, max-age=3600, immutable"},
    )
