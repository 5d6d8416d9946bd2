from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String
from sqlalchemy.types import JSON

from backend.db import Base


def _uuid_str() -> str:
    return str(uuid.uuid4())


JSONType = JSON


class UserORM(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_uuid_str)
    email = Column(String, nullable=True, index=True)
    personal_info = Column(JSONType, nullable=False, default=dict)
    address = Column(JSONType, nullable=False, default=dict)
    status_info = Column(JSONType, nullable=False, default=dict)
    # Normalized W-2 records, one dict per uploaded or edited W-2.
    w2 = Column(JSONType, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
