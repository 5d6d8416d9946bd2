from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse, Response
from PyPDF2 import PdfReader
from sqlalchemy.orm import Session

from backend.db import get_db
from backend.f1040nr_autofill import build_f1040nr_prefill
from backend.form_mappings import build_form_values, get_form
from backend.pdf_forms import fill_pdf_fields, list_acroform_fields, load_pdf_from_disk
from backend.schemas import F1040NRPrefill, FillFormRequest, FormFieldRead, FormFieldsResponse
from backend.settings import get_settings
from backend.users_store import find_user_by_email, user_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/forms", tags=["forms"])


def _form_or_404(form_key: str) -> Dict[str, Any]:
    try:
        return get_form(form_key)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown form: {form_key}") from exc


def _pdf_path(form: Dict[str, Any]) -> Path:
    return Path(get_settings()["forms_dir"]) / form["pdf"]


def _load_form_pdf(form: Dict[str, Any]) -> PdfReader:
    try:
        return load_pdf_from_disk(_pdf_path(form))
    except FileNotFoundError as exc:
        logger.warning("Blank PDF missing: %s", exc)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form PDF not found") from exc


# Declared before /{form_key}/... so "prefill" is not taken for a form key.
@router.get("/f1040nr/prefill", response_model=F1040NRPrefill)
def prefill_f1040nr(
    email: str = Query(...),
    tax_year: Optional[int] = Query(None),
    db: Session = Depends(get_db),
) -> F1040NRPrefill:
    user = find_user_by_email(db, email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    year = tax_year or datetime.utcnow().year
    return F1040NRPrefill(**build_f1040nr_prefill(user_to_dict(user), year))


@router.get("/{form_key}/fields", response_model=FormFieldsResponse)
def list_form_fields(form_key: str) -> FormFieldsResponse:
    form = _form_or_404(form_key)
    reader = _load_form_pdf(form)
    fields = [FormFieldRead(**field.to_dict()) for field in list_acroform_fields(reader)]
    return FormFieldsResponse(form=form_key, fields=fields)


@router.post("/{form_key}/fill")
def fill_form(form_key: str, payload: FillFormRequest) -> Response:
    form = _form_or_404(form_key)
    reader = _load_form_pdf(form)
    values = build_form_values(form_key, payload.values, payload.data)
    logger.info("Filling %s with %d field values", form_key, len(values))
    try:
        content = fill_pdf_fields(reader, values)
    except Exception as exc:
        logger.exception("Failed to fill %s", form_key)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fill PDF") from exc
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{form["download"]}"',
            "Cache-Control": "no-store",
        },
    )


@router.get("/{form_key}/download")
def download_form(form_key: str) -> FileResponse:
    form = _form_or_404(form_key)
    path = _pdf_path(form)
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form PDF not found")
    return FileResponse(path, media_type="application/pdf", filename=form["pdf"])
