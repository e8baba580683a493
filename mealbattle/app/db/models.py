from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint, func

from mealbattle.app.db.base import Base


class Document(Base):
    """One JSON document addressed by its collection path and id."""

    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc_id"),)

    id = Column(Integer, primary_key=True, index=True)
    collection = Column(String, nullable=False, index=True)
    doc_id = Column(String, nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
