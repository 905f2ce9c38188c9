"""
Database models for the CookBook backend.

All SQLAlchemy models are imported here so init_db() registers them.
"""

from cookbook.models.account import Account
from cookbook.models.document import Document

__all__ = [
    "Account",
    "Document",
]
