from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from backend.db_models import UserORM
from normalization import normalize_w2

logger = logging.getLogger(__name__)


class DuplicateEmailError(ValueError):
    """A profile with this e-mail already exists."""


def normalize_w2_list(items: Optional[Iterable[Any]]) -> List[Dict[str, Any]]:
    """Stored W-2s always go through the normalizer, whatever the client sent."""
    return [normalize_w2(item).to_document_dict() for item in (items or [])]


def _email_of(personal_info: Dict[str, Any]) -> Optional[str]:
    email = (personal_info.get("email") or "").strip().lower()
    return email or None


def user_to_dict(user: UserORM) -> Dict[str, Any]:
    return {
        "id": user.id,
        "personalInfo": user.personal_info or {},
        "address": user.address or {},
        "statusInfo": user.status_info or {},
        "w2": user.w2 or [],
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def find_user_by_email(db: Session, email: str) -> Optional[UserORM]:
    if not email:
        return None
    return db.query(UserORM).filter(UserORM.email == email.strip().lower()).first()


def add_user(db: Session, data: Dict[str, Any]) -> UserORM:
    personal_info = dict(data.get("personalInfo") or {})
    email = _email_of(personal_info)
    if email and find_user_by_email(db, email):
        raise DuplicateEmailError("User already registered with this email.")

    user = UserORM(
        email=email,
        personal_info=personal_info,
        address=dict(data.get("address") or {}),
        status_info=dict(data.get("statusInfo") or {}),
        w2=normalize_w2_list(data.get("w2")),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s", user.id)
    return user


def update_user_by_id(db: Session, user_id: str, updates: Dict[str, Any]) -> Optional[UserORM]:
    """
    Apply a partial update. Sections absent from ``updates`` are left alone;
    a ``w2`` list replaces the stored list.
    """
    user = db.get(UserORM, user_id)
    if user is None:
        return None

    if updates.get("personalInfo") is not None:
        personal_info = dict(updates["personalInfo"])
        email = _email_of(personal_info)
        if email and email != user.email:
            existing = find_user_by_email(db, email)
            if existing is not None and existing.id != user.id:
                raise DuplicateEmailError("User already registered with this email.")
        user.personal_info = personal_info
        user.email = email
    if updates.get("address") is not None:
        user.address = dict(updates["address"])
    if updates.get("statusInfo") is not None:
        user.status_info = dict(updates["statusInfo"])
    if updates.get("w2") is not None:
        user.w2 = normalize_w2_list(updates["w2"])
    user.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(user)
    return user
