"""Notification inbox API Router"""

from fastapi import APIRouter, Depends, Query

from ..auth.dependencies import get_current_actor
from ..auth.identity import IdentityFacts
from ..dependencies import get_notifier
from .schemas import BulkNotificationResult, NotificationListResponse, NotificationResponse
from .service import Notifier

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse, summary="List my notifications")
def list_notifications(
    unread_only: bool = Query(False),
    actor: IdentityFacts = Depends(get_current_actor),
    notifier: Notifier = Depends(get_notifier),
):
    """Newest first."""
    items = notifier.list_for_user(actor.id, unread_only=unread_only)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        unread_count=notifier.unread_count(actor.id),
    )


@router.post("/read-all", response_model=BulkNotificationResult)
def mark_all_as_read(
    actor: IdentityFacts = Depends(get_current_actor),
    notifier: Notifier = Depends(get_notifier),
):
    return BulkNotificationResult(count=notifier.mark_all_as_read(actor))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_as_read(
    notification_id: str,
    actor: IdentityFacts = Depends(get_current_actor),
    notifier: Notifier = Depends(get_notifier),
):
    return NotificationResponse.model_validate(notifier.mark_as_read(actor, notification_id))


@router.delete("", response_model=BulkNotificationResult)
def delete_all_notifications(
    actor: IdentityFacts = Depends(get_current_actor),
    notifier: Notifier = Depends(get_notifier),
):
    return BulkNotificationResult(count=notifier.delete_all(actor))


@router.delete("/{notification_id}", status_code=204)
def delete_notification(
    notification_id: str,
    actor: IdentityFacts = Depends(get_current_actor),
    notifier: Notifier = Depends(get_notifier),
):
    notifier.delete(actor, notification_id)
