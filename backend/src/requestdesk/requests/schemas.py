"""Pydantic schemas for the document requests API"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import AttachmentStatus, CommentKind, DocumentType
from .status import RequestStatus


# ============================================================================
# Response Schemas
# ============================================================================

class CommentResponse(BaseModel):
    id: str
    author_id: str
    author_name: str
    content: str
    created_at: datetime
    is_internal: bool = False
    is_direct_message: bool = False

    model_config = ConfigDict(from_attributes=True)


class AttachmentResponse(BaseModel):
    id: str
    name: str
    mime_type: str
    size: int
    blob_ref: str = Field(..., description="URL returned by the blob store")
    uploaded_by: str
    uploaded_by_id: Optional[str] = None
    status: AttachmentStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RequestResponse(BaseModel):
    """A document request as the caller is allowed to see it"""
    id: str
    status: RequestStatus
    student_id: str
    student_name: str
    student_admission_no: str
    document_type: DocumentType
    details: str
    assigned_to_id: Optional[str] = None
    assigned_to_name: Optional[str] = None
    expected_completion_date: Optional[date] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    dashboard_hidden: bool = False
    comments: List[CommentResponse] = Field(default_factory=list)
    attachments: List[AttachmentResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class RequestListResponse(BaseModel):
    items: List[RequestResponse]
    total: int


class AssigneeResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: str
    designation: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ClearResponse(BaseModel):
    """Result of a bulk delete/hide"""
    applied_ids: List[str]
    count: int


# ============================================================================
# Request Schemas
# ============================================================================

class AssignRequest(BaseModel):
    assignee_id: str = Field(..., min_length=1)

    model_config = ConfigDict(extra='forbid')


class StatusUpdate(BaseModel):
    status: RequestStatus

    model_config = ConfigDict(extra='forbid')


class ExpectedDateUpdate(BaseModel):
    expected_completion_date: date

    model_config = ConfigDict(extra='forbid')


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    kind: CommentKind = Field(CommentKind.DIRECT, description="DIRECT or INTERNAL for staff; ignored for students")

    model_config = ConfigDict(extra='forbid')


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)

    model_config = ConfigDict(extra='forbid')
