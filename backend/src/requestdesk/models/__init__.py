"""SQLAlchemy Models for RequestDesk"""

from .base import Base, PortableJSONB
from .record_document import RecordDocument

__all__ = ["Base", "PortableJSONB", "RecordDocument"]
