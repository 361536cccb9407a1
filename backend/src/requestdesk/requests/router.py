"""Document Requests API Router

One endpoint per lifecycle, attachment and deletion operation. Every endpoint
returns the record as the caller is allowed to see it; domain errors are
mapped to HTTP statuses by the application exception handlers.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from ..auth.dependencies import get_current_actor
from ..auth.identity import IdentityFacts
from ..auth.roles import is_manager
from ..config import Settings
from ..dependencies import get_app_settings, get_blob_store, get_request_service
from ..domain.errors import UnauthorizedError
from ..domain.ports.blob_store import BlobStorePort, attachment_path
from ..visibility.engine import view_record
from ..visibility.listing import ListTab, RequestListFilter
from .models import DocumentRequest, DocumentType
from .schemas import (
    AssigneeResponse,
    AssignRequest,
    ClearResponse,
    CommentCreate,
    ExpectedDateUpdate,
    RejectRequest,
    RequestListResponse,
    RequestResponse,
    StatusUpdate,
)
from .service import RequestService

router = APIRouter(prefix="/requests", tags=["requests"])

DEFAULT_MIME_TYPE = "application/octet-stream"


def _respond(actor: IdentityFacts, record: DocumentRequest) -> RequestResponse:
    return RequestResponse.model_validate(view_record(actor, record))


async def _read_upload(file: UploadFile, settings: Settings) -> bytes:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.MAX_UPLOAD_BYTES} byte limit",
        )
    return data


def _list_filter(
    tab: ListTab = Query(ListTab.ALL, description="all | new | completed"),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=200),
) -> RequestListFilter:
    return RequestListFilter(tab=tab, status=status_filter, search=search)


# ============================================================================
# Collection endpoints
# ============================================================================

@router.post("", response_model=RequestResponse, status_code=201, summary="Submit a document request")
async def create_request(
    document_type: DocumentType = Form(...),
    details: str = Form("", max_length=5000),
    file: Optional[UploadFile] = File(None),
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
    blobs: BlobStorePort = Depends(get_blob_store),
    settings: Settings = Depends(get_app_settings),
):
    """Students only. An optional reference file is stored before the request
    is created and attached as PENDING."""
    request_id = service.next_request_id(actor)

    initial_attachment = None
    if file is not None and file.filename:
        data = await _read_upload(file, settings)
        mime_type = file.content_type or DEFAULT_MIME_TYPE
        blob_ref = await blobs.put(data, attachment_path(request_id, file.filename), mime_type)
        initial_attachment = {
            "name": file.filename,
            "mime_type": mime_type,
            "size": len(data),
            "blob_ref": blob_ref,
        }

    record = service.create_request(
        actor,
        document_type=document_type,
        details=details,
        request_id=request_id,
        initial_attachment=initial_attachment,
    )
    return _respond(actor, record)


@router.get("", response_model=RequestListResponse, summary="List requests")
def list_requests(
    list_filter: RequestListFilter = Depends(_list_filter),
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    """Requests in the caller's scope, newest first, minus the ones they removed."""
    records = service.list(actor, list_filter)
    return RequestListResponse(
        items=[RequestResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.post("/clear", response_model=ClearResponse, summary="Remove all displayed requests")
def clear_displayed(
    list_filter: RequestListFilter = Depends(_list_filter),
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    """Hard delete (super admin) or hide (everyone else) every request the
    given filters display. Committed in chunks; a failing chunk returns 500
    with the ids already applied."""
    applied = service.clear_displayed(actor, list_filter)
    return ClearResponse(applied_ids=applied, count=len(applied))


@router.get("/assignees", response_model=List[AssigneeResponse], summary="Users requests can be assigned to")
def list_assignees(
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    if not is_manager(actor.role):
        raise UnauthorizedError("Only staff members can list assignees")
    return [
        AssigneeResponse(
            id=u.id,
            first_name=u.first_name,
            last_name=u.last_name,
            email=u.email,
            role=u.role.value,
            designation=u.designation,
        )
        for u in service.directory.potential_assignees()
    ]


# ============================================================================
# Single request endpoints
# ============================================================================

@router.get("/{request_id}", response_model=RequestResponse, summary="Get a request")
def get_request(
    request_id: str,
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    return RequestResponse.model_validate(service.get(actor, request_id))


@router.post("/{request_id}/assign", response_model=RequestResponse, summary="Assign a request")
def assign_request(
    request_id: str,
    body: AssignRequest,
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    """Super admin only. Status is reset to ASSIGNED."""
    return _respond(actor, service.assign(actor, request_id, body.assignee_id))


@router.post("/{request_id}/status", response_model=RequestResponse, summary="Change request status")
def set_status(
    request_id: str,
    body: StatusUpdate,
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    """COMPLETED cannot be set manually (409)."""
    return _respond(actor, service.set_status(actor, request_id, body.status))


@router.post("/{request_id}/expected-date", response_model=RequestResponse, summary="Set expected collection date")
def set_expected_date(
    request_id: str,
    body: ExpectedDateUpdate,
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    return _respond(actor, service.set_expected_date(actor, request_id, body.expected_completion_date))


@router.post("/{request_id}/comments", response_model=RequestResponse, status_code=201, summary="Add a comment")
def add_comment(
    request_id: str,
    body: CommentCreate,
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    return _respond(actor, service.add_comment(actor, request_id, body.content, body.kind))


@router.post("/{request_id}/attachments", response_model=RequestResponse, status_code=201, summary="Upload a document")
async def upload_attachment(
    request_id: str,
    file: UploadFile = File(...),
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
    blobs: BlobStorePort = Depends(get_blob_store),
    settings: Settings = Depends(get_app_settings),
):
    """Staff uploads await super admin review; super admin uploads complete
    the request immediately."""
    if not is_manager(actor.role):
        raise UnauthorizedError("Only staff members can upload documents to a request")
    service.load(request_id)

    data = await _read_upload(file, settings)
    filename = file.filename or "document"
    mime_type = file.content_type or DEFAULT_MIME_TYPE
    blob_ref = await blobs.put(data, attachment_path(request_id, filename), mime_type)

    record = service.upload_attachment(actor, request_id, filename, mime_type, len(data), blob_ref)
    return _respond(actor, record)


@router.post(
    "/{request_id}/attachments/{attachment_id}/approve",
    response_model=RequestResponse,
    summary="Approve a document",
)
def approve_attachment(
    request_id: str,
    attachment_id: str,
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    return _respond(actor, service.approve_attachment(actor, request_id, attachment_id))


@router.post(
    "/{request_id}/attachments/{attachment_id}/reject",
    response_model=RequestResponse,
    summary="Reject a document",
)
def reject_attachment(
    request_id: str,
    attachment_id: str,
    body: RejectRequest,
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    return _respond(actor, service.reject_attachment(actor, request_id, attachment_id, body.reason))


@router.delete("/{request_id}", status_code=204, summary="Delete or hide a request")
def delete_request(
    request_id: str,
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    """Super admin: permanent delete for everyone. Others: removed from their own lists."""
    service.delete(actor, request_id)


@router.post("/{request_id}/hide-from-dashboard", status_code=204, summary="Remove from dashboard")
def hide_from_dashboard(
    request_id: str,
    actor: IdentityFacts = Depends(get_current_actor),
    service: RequestService = Depends(get_request_service),
):
    service.hide_from_dashboard(actor, request_id)
