"""Document request aggregate: DocumentRequest, Comment, Attachment.

These are domain models (not database rows). They serialize to plain dicts for
the record store via to_dict()/from_dict().
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from ..domain.records import ManageableRecord, RecordKind, from_iso, to_iso
from .status import RequestStatus


REQUESTS_COLLECTION = "requests"


class DocumentType(str, Enum):
    """Documents a student can request."""
    PREDICTED_GRADES = "Predicted Grades"
    EDEXCEL_CERTIFICATE = "Edexcel Certificate"
    EDEXCEL_EXAM_PAPERS = "Edexcel Exam Papers"
    ACADEMIC_REPORT = "Academic Report Card"
    REFERENCE_LETTER = "Reference Letter"
    LEAVING_CERTIFICATE = "School Leaving Certificate"
    AWARDS_CERTIFICATE = "Awards Ceremony Certificate"
    OTHER = "Other"


class AttachmentStatus(str, Enum):
    """Attachment review status.

    PENDING → APPROVED | REJECTED. Both outcomes are final.
    """
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class CommentKind(str, Enum):
    """Comment audience chosen by the author."""
    PLAIN = "PLAIN"        # Student-authored
    INTERNAL = "INTERNAL"  # Staff-only note
    DIRECT = "DIRECT"      # Private message between author and student


@dataclass(frozen=True)
class Comment:
    id: str
    author_id: str
    author_name: str
    content: str
    created_at: datetime
    is_internal: bool = False
    is_direct_message: bool = False

    def __post_init__(self):
        if self.is_internal and self.is_direct_message:
            raise ValueError("A comment cannot be both internal and a direct message")

    @property
    def kind(self) -> CommentKind:
        if self.is_internal:
            return CommentKind.INTERNAL
        if self.is_direct_message:
            return CommentKind.DIRECT
        return CommentKind.PLAIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "content": self.content,
            "created_at": to_iso(self.created_at),
            "is_internal": self.is_internal,
            "is_direct_message": self.is_direct_message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=data["id"],
            author_id=data["author_id"],
            author_name=data.get("author_name", ""),
            content=data.get("content", ""),
            created_at=from_iso(data["created_at"]),
            is_internal=bool(data.get("is_internal", False)),
            is_direct_message=bool(data.get("is_direct_message", False)),
        )


@dataclass(frozen=True)
class Attachment:
    """A file attached to a request.

    Only the blob reference is stored, never the file bytes. ``uploaded_by``
    is the uploader's display name; ``uploaded_by_id`` is absent on records
    written before uploader ids were stored.
    """
    id: str
    name: str
    mime_type: str
    size: int
    blob_ref: str
    uploaded_by: str
    created_at: datetime
    status: AttachmentStatus = AttachmentStatus.PENDING
    uploaded_by_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "mime_type": self.mime_type,
            "size": self.size,
            "blob_ref": self.blob_ref,
            "uploaded_by": self.uploaded_by,
            "uploaded_by_id": self.uploaded_by_id,
            "status": self.status.value,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attachment":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mime_type", "application/octet-stream"),
            size=int(data.get("size", 0)),
            blob_ref=data.get("blob_ref", ""),
            uploaded_by=data.get("uploaded_by", ""),
            uploaded_by_id=data.get("uploaded_by_id"),
            status=AttachmentStatus(data.get("status", AttachmentStatus.PENDING.value)),
            created_at=from_iso(data["created_at"]),
        )


@dataclass(kw_only=True)
class DocumentRequest(ManageableRecord):
    """The document request aggregate.

    Created once by a student (status PENDING) and only mutated afterwards.
    Comments and attachments are append-only; they are filtered on read,
    never reordered or removed.
    """
    kind: ClassVar[RecordKind] = RecordKind.DOCUMENT_REQUEST
    collection: ClassVar[str] = REQUESTS_COLLECTION

    status: RequestStatus = RequestStatus.PENDING
    student_id: str
    student_name: str
    student_admission_no: str
    document_type: DocumentType = DocumentType.OTHER
    details: str = ""
    expected_completion_date: Optional[date] = None
    updated_at: Optional[datetime] = None
    comments: List[Comment] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)

    def find_attachment(self, attachment_id: str) -> Optional[Attachment]:
        for attachment in self.attachments:
            if attachment.id == attachment_id:
                return attachment
        return None

    def has_approved_attachment(self) -> bool:
        return any(a.status == AttachmentStatus.APPROVED for a in self.attachments)

    def copy_with(self, **changes: Any) -> "DocumentRequest":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "student_admission_no": self.student_admission_no,
            "document_type": self.document_type.value,
            "details": self.details,
            "assigned_to_id": self.assigned_to_id,
            "assigned_to_name": self.assigned_to_name,
            "expected_completion_date": (
                self.expected_completion_date.isoformat()
                if self.expected_completion_date else None
            ),
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "comments": [c.to_dict() for c in self.comments],
            "attachments": [a.to_dict() for a in self.attachments],
            "hidden_from_users": list(self.hidden_from_users),
            "dashboard_hidden": self.dashboard_hidden,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentRequest":
        expected = data.get("expected_completion_date")
        return cls(
            id=data["id"],
            status=RequestStatus(data.get("status", RequestStatus.PENDING.value)),
            student_id=data["student_id"],
            student_name=data.get("student_name", ""),
            student_admission_no=data.get("student_admission_no", ""),
            document_type=DocumentType(data.get("document_type", DocumentType.OTHER.value)),
            details=data.get("details", ""),
            assigned_to_id=data.get("assigned_to_id"),
            assigned_to_name=data.get("assigned_to_name"),
            expected_completion_date=date.fromisoformat(expected) if expected else None,
            created_at=from_iso(data["created_at"]),
            updated_at=from_iso(data.get("updated_at")),
            comments=[Comment.from_dict(c) for c in data.get("comments") or []],
            attachments=[Attachment.from_dict(a) for a in data.get("attachments") or []],
            hidden_from_users=list(data.get("hidden_from_users") or []),
            dashboard_hidden=bool(data.get("dashboard_hidden", False)),
        )
