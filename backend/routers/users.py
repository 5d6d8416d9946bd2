from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from backend.db import get_db
from backend.schemas import MinimalRegistration, UserFormData, UserRead, UserUpdate
from backend.users_store import (
    DuplicateEmailError,
    add_user,
    find_user_by_email,
    update_user_by_id,
    user_to_dict,
)

router = APIRouter(prefix="/api/users", tags=["users"])


def _parse_new_user(payload: Dict[str, Any]) -> UserFormData:
    try:
        if "personalInfo" in payload:
            return UserFormData.model_validate(payload)
        return MinimalRegistration.model_validate(payload).to_profile()
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(payload: Dict[str, Any] = Body(...), db: Session = Depends(get_db)) -> UserRead:
    profile = _parse_new_user(payload)
    try:
        user = add_user(db, profile.model_dump(mode="json"))
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return UserRead(**user_to_dict(user))


@router.get("", response_model=UserRead)
def get_user(
    email: Optional[str] = Query(None),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
    db: Session = Depends(get_db),
) -> UserRead:
    lookup = (email or x_user_email or "").strip()
    if not lookup:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="email is required")
    user = find_user_by_email(db, lookup)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return UserRead(**user_to_dict(user))


@router.put("", response_model=UserRead)
def update_user(
    payload: UserUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> UserRead:
    if not id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="id is required")
    updates = {name: value for name, value in payload.model_dump(mode="json").items() if value is not None}
    try:
        user = update_user_by_id(db, id, updates)
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return UserRead(**user_to_dict(user))
