from sqlalchemy import Column, Integer, String, JSON, DateTime, UniqueConstraint
from sqlalchemy.sql import func

from campus_resources.cores.db import Base


class StoredDocument(Base):
    """One schemaless record of a named collection (e.g. `resources`, `users/{uid}/downloads`)."""

    __tablename__ = "stored_documents"
    __table_args__ = (UniqueConstraint("collection", "doc_id", name="uq_collection_doc_id"),)

    # Insertion order, used as the natural snapshot order
    seq = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(255), nullable=False, index=True)
    doc_id = Column(String(64), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<StoredDocument(collection={self.collection}, doc_id={self.doc_id})>"
