"""
Account database model (identity records).
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime

from cookbook.database import Base


def _new_account_id() -> str:
    return uuid.uuid4().hex


class Account(Base):
    """Identity used to sign in. The matching profile lives in the users collection."""

    __tablename__ = "accounts"

    id = Column(String(32), primary_key=True, default=_new_account_id)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Account(id={self.id}, email={self.email})>"
