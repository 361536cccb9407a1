"""NotificationRouter - decides who hears about a lifecycle event.

Pure function of (event, SUPER_ADMIN ids). Guarantees:
- a recipient appears at most once per event
- the acting user is never notified about their own action

Routing Table:
┌─────────────────────────┬──────────────────────────────────┐
│ Event                   │ Recipients                       │
├─────────────────────────┼──────────────────────────────────┤
│ REQUEST_CREATED         │ all SUPER_ADMIN                  │
│ REQUEST_ASSIGNED        │ new assignee                     │
│ STATUS_CHANGED          │ student (IN_PROGRESS only)       │
│ EXPECTED_DATE_SET       │ student                          │
│ ATTACHMENT_SUBMITTED    │ all SUPER_ADMIN                  │
│ ATTACHMENT_APPROVED     │ student                          │
│ ATTACHMENT_REJECTED     │ assignee (if any)                │
│ INTERNAL_COMMENT_ADDED  │ assignee + all SUPER_ADMIN       │
│ STUDENT_COMMENT_ADDED   │ all SUPER_ADMIN + assignee       │
│ DIRECT_MESSAGE_ADDED    │ student                          │
│ PASSWORD_RESET_CREATED  │ all SUPER_ADMIN                  │
│ PASSWORD_RESET_ASSIGNED │ new assignee                     │
└─────────────────────────┴──────────────────────────────────┘
"""

from typing import Iterable, List, Optional

from ..password_resets.models import PasswordResetRequest
from ..requests.models import DocumentRequest
from ..requests.status import RequestStatus
from .models import EventType, NotificationTarget, RequestEvent


DOCUMENT_READY_MESSAGE = (
    "Your document is ready for collection. You can collect it from the school "
    "or download the attached copy."
)
PASSWORD_RESETS_LINK = "/users"


def request_link(request_id: str) -> str:
    return f"/requests/{request_id}"


def _recipients(
    candidates: Iterable[Optional[str]],
    actor_id: Optional[str],
) -> List[str]:
    """De-duplicate candidates preserving order, dropping blanks and the actor."""
    seen = []
    for candidate in candidates:
        if not candidate or candidate == actor_id or candidate in seen:
            continue
        seen.append(candidate)
    return seen


def _document_request_candidates(event: RequestEvent, super_admin_ids: List[str]):
    record: DocumentRequest = event.record
    rid = record.id

    if event.type == EventType.REQUEST_CREATED:
        return super_admin_ids, f"New request {rid} from {record.student_name}"

    if event.type == EventType.REQUEST_ASSIGNED:
        return [record.assigned_to_id], f"You have been assigned request #{rid}"

    if event.type == EventType.STATUS_CHANGED:
        if record.status != RequestStatus.IN_PROGRESS:
            return [], ""
        return [record.student_id], f"Your request #{rid} is now In-Progress."

    if event.type == EventType.EXPECTED_DATE_SET:
        formatted = event.detail.get("formatted_date", "")
        return (
            [record.student_id],
            f"Expected collection date for #{rid} updated to {formatted}",
        )

    if event.type == EventType.ATTACHMENT_SUBMITTED:
        return super_admin_ids, f"Document uploaded by staff for #{rid}. Review needed."

    if event.type == EventType.ATTACHMENT_APPROVED:
        return [record.student_id], DOCUMENT_READY_MESSAGE

    if event.type == EventType.ATTACHMENT_REJECTED:
        return (
            [record.assigned_to_id],
            f"Action Needed: Document rejected for request #{rid}",
        )

    if event.type == EventType.INTERNAL_COMMENT_ADDED:
        return (
            [record.assigned_to_id, *super_admin_ids],
            f"New internal comment on #{rid}",
        )

    if event.type == EventType.STUDENT_COMMENT_ADDED:
        return (
            [*super_admin_ids, record.assigned_to_id],
            f"New message from student on #{rid}",
        )

    if event.type == EventType.DIRECT_MESSAGE_ADDED:
        return [record.student_id], f"New message on request #{rid}"

    raise ValueError(f"Event {event.type.value} does not apply to document requests")


def _password_reset_candidates(event: RequestEvent, super_admin_ids: List[str]):
    record: PasswordResetRequest = event.record

    if event.type == EventType.PASSWORD_RESET_CREATED:
        return (
            super_admin_ids,
            f"New Password Reset Request from {record.requester_name}",
        )

    if event.type == EventType.PASSWORD_RESET_ASSIGNED:
        return [record.assigned_to_id], "Password Reset Request assigned to you"

    raise ValueError(f"Event {event.type.value} does not apply to password resets")


def route(event: RequestEvent, super_admin_ids: Iterable[str]) -> List[NotificationTarget]:
    """Compute the notifications to emit for an event.

    Args:
        event: Lifecycle event carrying the post-change record and the actor
        super_admin_ids: Ids of all SUPER_ADMIN users

    Returns:
        List of NotificationTarget, one per distinct recipient

    Raises:
        ValueError: If the event type does not match the record kind
    """
    admins = list(super_admin_ids)
    if isinstance(event.record, DocumentRequest):
        candidates, message = _document_request_candidates(event, admins)
        link = request_link(event.record.id)
    elif isinstance(event.record, PasswordResetRequest):
        candidates, message = _password_reset_candidates(event, admins)
        link = PASSWORD_RESETS_LINK
    else:
        raise ValueError(f"Unsupported record type: {type(event.record).__name__}")

    return [
        NotificationTarget(recipient_id=recipient, message=message, link=link)
        for recipient in _recipients(candidates, event.actor_id)
    ]
