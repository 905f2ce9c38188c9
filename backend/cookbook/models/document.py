"""
Document database model.

A document is a JSON map stored under (collection, doc_id), the same shape
the records in cookbook.records encode to.
"""

from datetime import datetime

from sqlalchemy import Column, String, DateTime, JSON, Index

from cookbook.database import Base


class Document(Base):
    """Schemaless document grouped under a named collection."""

    __tablename__ = "documents"

    collection = Column(String(64), primary_key=True)
    doc_id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_documents_collection_created", "collection", "created_at"),
    )

    def __repr__(self):
        return f"<Document(collection={self.collection}, doc_id={self.doc_id})>"
