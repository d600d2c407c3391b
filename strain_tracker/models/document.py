"""
Document model - one row per stored document, keyed by its full path.
"""
from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    String,
    DateTime,
    JSON,
    Index,
)

from strain_tracker.db.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentRecord(Base):
    """
    Schemaless document table.

    ``collection`` is the parent collection path (for example
    ``artifacts/default-app-id/users/<uid>/strain_reviews``) and ``path`` is
    ``collection + "/" + doc_id``.
    """

    __tablename__ = "documents"

    path = Column(String, primary_key=True)
    collection = Column(String, nullable=False)
    doc_id = Column(String, nullable=False)

    # Document body; timestamps inside are ISO-8601 strings
    data = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_documents_collection", "collection"),
        Index("idx_documents_collection_created", "collection", "created_at"),
    )

    def __repr__(self):
        return f"<DocumentRecord(path={self.path})>"
