"""Password Reset Requests API Router

Submission is public (the requester cannot sign in); every other endpoint
requires a bearer token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..auth.dependencies import get_current_actor
from ..auth.identity import IdentityFacts
from ..dependencies import get_password_reset_service
from ..requests.schemas import AssignRequest, ClearResponse
from ..visibility.listing import ListTab, RequestListFilter
from .schemas import (
    PasswordResetCreate,
    PasswordResetResponse,
    PasswordResetStatusUpdate,
    PasswordResetSubmitted,
)
from .service import PasswordResetService

router = APIRouter(prefix="/password-resets", tags=["password_resets"])


def _list_filter(
    tab: ListTab = Query(ListTab.ALL),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=200),
) -> RequestListFilter:
    return RequestListFilter(tab=tab, status=status_filter, search=search)


@router.post("", response_model=PasswordResetSubmitted, status_code=201, summary="Request a password reset")
def submit_password_reset(
    body: PasswordResetCreate,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    """Public endpoint. All super admins are notified."""
    record = service.create_request(
        role=body.role,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        phone=body.phone,
        admission_number=body.admission_number,
        gender=body.gender,
        designation=body.designation,
    )
    return PasswordResetSubmitted(id=record.id, status=record.status)


@router.get("", response_model=list[PasswordResetResponse], summary="List password reset requests")
def list_password_resets(
    list_filter: RequestListFilter = Depends(_list_filter),
    actor: IdentityFacts = Depends(get_current_actor),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    return [PasswordResetResponse.model_validate(r) for r in service.list(actor, list_filter)]


@router.post("/clear", response_model=ClearResponse, summary="Remove all displayed password reset requests")
def clear_displayed(
    list_filter: RequestListFilter = Depends(_list_filter),
    actor: IdentityFacts = Depends(get_current_actor),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    applied = service.clear_displayed(actor, list_filter)
    return ClearResponse(applied_ids=applied, count=len(applied))


@router.get("/{request_id}", response_model=PasswordResetResponse)
def get_password_reset(
    request_id: str,
    actor: IdentityFacts = Depends(get_current_actor),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    return PasswordResetResponse.model_validate(service.get(actor, request_id))


@router.post("/{request_id}/assign", response_model=PasswordResetResponse)
def assign_password_reset(
    request_id: str,
    body: AssignRequest,
    actor: IdentityFacts = Depends(get_current_actor),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    return PasswordResetResponse.model_validate(service.assign(actor, request_id, body.assignee_id))


@router.post("/{request_id}/status", response_model=PasswordResetResponse)
def set_password_reset_status(
    request_id: str,
    body: PasswordResetStatusUpdate,
    actor: IdentityFacts = Depends(get_current_actor),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    return PasswordResetResponse.model_validate(service.set_status(actor, request_id, body.status))


@router.delete("/{request_id}", status_code=204)
def delete_password_reset(
    request_id: str,
    actor: IdentityFacts = Depends(get_current_actor),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    service.delete(actor, request_id)


@router.post("/{request_id}/hide-from-dashboard", status_code=204)
def hide_from_dashboard(
    request_id: str,
    actor: IdentityFacts = Depends(get_current_actor),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    service.hide_from_dashboard(actor, request_id)
