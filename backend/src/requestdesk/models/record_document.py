"""RecordDocument SQLAlchemy model

One row per stored document of any collection (requests, password_resets,
notifications, users). The document body is kept as JSON so field transforms
can be applied exactly as in the in-process store.
"""

from sqlalchemy import Column, DateTime, Index, Text
from sqlalchemy.sql import func

from .base import Base, PortableJSONB


class RecordDocument(Base):
    __tablename__ = "record_document"
    __table_args__ = (
        Index("ix_record_document_collection", "collection"),
    )

    collection = Column(Text, primary_key=True)
    id = Column(Text, primary_key=True)
    data = Column(PortableJSONB, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self):
        return f"<RecordDocument(collection={self.collection}, id={self.id})>"
