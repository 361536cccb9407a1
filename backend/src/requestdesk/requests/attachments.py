"""AttachmentWorkflow - approval sub-state-machine for individual attachments.

Attachment lifecycle:
    PENDING → APPROVED   (super admin approves; request → COMPLETED)
    PENDING → REJECTED   (super admin rejects; request → ACTION_NEEDED)

Uploads by a super admin skip review: the attachment is created APPROVED and
the request is completed in the same change set. These are the only paths
that write COMPLETED or ACTION_NEEDED through documents.

Once APPROVED or REJECTED an attachment never changes again. Repeating the
same decision is a no-op; the opposite decision is an invalid transition.
"""

import uuid
from datetime import datetime
from typing import Callable

from ..auth.identity import IdentityFacts
from ..auth.roles import UserRole, is_manager
from ..domain.errors import InvalidTransitionError, NotFoundError, UnauthorizedError
from ..domain.ports.store import ArrayAppend, ArrayItemPatch
from ..domain.records import to_iso, utcnow
from ..domain.transition import Transition
from ..notifications.models import EventType, RequestEvent
from .models import Attachment, AttachmentStatus, Comment, DocumentRequest
from .status import RequestStatus

SYSTEM_AUTHOR_ID = "system"
SYSTEM_AUTHOR_NAME = "System Alert"


def _new_id() -> str:
    return uuid.uuid4().hex


class AttachmentWorkflow:

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.clock = clock
        self.id_factory = id_factory

    def upload(
        self,
        actor: IdentityFacts,
        record: DocumentRequest,
        name: str,
        mime_type: str,
        size: int,
        blob_ref: str,
    ) -> Transition[DocumentRequest]:
        """Attach a stored file to the request.

        Args:
            actor: Uploader (SUPER_ADMIN, ADMIN or STAFF)
            record: Current request state
            name: Original file name
            mime_type: File MIME type
            size: File size in bytes
            blob_ref: Reference returned by the blob store

        Returns:
            Transition appending the attachment; for super admins also
            completing the request
        """
        if not is_manager(actor.role):
            raise UnauthorizedError("Only staff members can upload documents to a request")

        now = self.clock()
        direct_approval = actor.role == UserRole.SUPER_ADMIN
        attachment = Attachment(
            id=self.id_factory(),
            name=name,
            mime_type=mime_type,
            size=size,
            blob_ref=blob_ref,
            uploaded_by=actor.display_name,
            uploaded_by_id=actor.id,
            status=AttachmentStatus.APPROVED if direct_approval else AttachmentStatus.PENDING,
            created_at=now,
        )

        changes = {
            "attachments": ArrayAppend((attachment.to_dict(),)),
            "updated_at": to_iso(now),
        }
        if direct_approval:
            updated = record.copy_with(
                attachments=[*record.attachments, attachment],
                status=RequestStatus.COMPLETED,
                updated_at=now,
            )
            changes["status"] = RequestStatus.COMPLETED.value
            event_type = EventType.ATTACHMENT_APPROVED
        else:
            updated = record.copy_with(
                attachments=[*record.attachments, attachment],
                updated_at=now,
            )
            event_type = EventType.ATTACHMENT_SUBMITTED

        return Transition(
            record=updated,
            changes=changes,
            events=[RequestEvent(event_type, updated, actor, {"attachment_id": attachment.id})],
        )

    def approve(
        self,
        actor: IdentityFacts,
        record: DocumentRequest,
        attachment_id: str,
    ) -> Transition[DocumentRequest]:
        """Approve a pending attachment and complete the request."""
        attachment = self._reviewable(actor, record, attachment_id, AttachmentStatus.APPROVED)
        if attachment is None:
            return Transition(record=record)

        now = self.clock()
        approved = _with_status(attachment, AttachmentStatus.APPROVED)
        updated = record.copy_with(
            attachments=_replace_attachment(record.attachments, approved),
            status=RequestStatus.COMPLETED,
            updated_at=now,
        )
        return Transition(
            record=updated,
            changes={
                "attachments": _status_patch(attachment_id, AttachmentStatus.APPROVED),
                "status": RequestStatus.COMPLETED.value,
                "updated_at": to_iso(now),
            },
            events=[RequestEvent(
                EventType.ATTACHMENT_APPROVED, updated, actor, {"attachment_id": attachment_id}
            )],
        )

    def reject(
        self,
        actor: IdentityFacts,
        record: DocumentRequest,
        attachment_id: str,
        reason: str,
    ) -> Transition[DocumentRequest]:
        """Reject a pending attachment.

        The request moves to ACTION_NEEDED and an internal system comment
        records the reason for the assignee.
        """
        reason = (reason or "").strip()
        if not reason:
            raise InvalidTransitionError("A rejection reason is required")

        attachment = self._reviewable(actor, record, attachment_id, AttachmentStatus.REJECTED)
        if attachment is None:
            return Transition(record=record)

        now = self.clock()
        rejected = _with_status(attachment, AttachmentStatus.REJECTED)
        system_comment = Comment(
            id=self.id_factory(),
            author_id=SYSTEM_AUTHOR_ID,
            author_name=SYSTEM_AUTHOR_NAME,
            content=f"Document Rejected: {reason}",
            created_at=now,
            is_internal=True,
        )
        updated = record.copy_with(
            attachments=_replace_attachment(record.attachments, rejected),
            comments=[*record.comments, system_comment],
            status=RequestStatus.ACTION_NEEDED,
            updated_at=now,
        )
        return Transition(
            record=updated,
            changes={
                "attachments": _status_patch(attachment_id, AttachmentStatus.REJECTED),
                "comments": ArrayAppend((system_comment.to_dict(),)),
                "status": RequestStatus.ACTION_NEEDED.value,
                "updated_at": to_iso(now),
            },
            events=[RequestEvent(
                EventType.ATTACHMENT_REJECTED,
                updated,
                actor,
                {"attachment_id": attachment_id, "reason": reason},
            )],
        )

    def _reviewable(
        self,
        actor: IdentityFacts,
        record: DocumentRequest,
        attachment_id: str,
        decision: AttachmentStatus,
    ):
        """Return the attachment if it can take ``decision``, None if already taken.

        Raises:
            UnauthorizedError: Actor is not a super admin
            NotFoundError: Attachment id unknown on this request
            InvalidTransitionError: Attachment already received the opposite decision
        """
        if actor.role != UserRole.SUPER_ADMIN:
            raise UnauthorizedError("Only a super admin can approve or reject documents")

        attachment = record.find_attachment(attachment_id)
        if attachment is None:
            raise NotFoundError("Attachment", attachment_id)

        if attachment.status == decision:
            return None
        if attachment.status != AttachmentStatus.PENDING:
            raise InvalidTransitionError(
                f"Attachment {attachment_id} is already {attachment.status.value} "
                f"and cannot be {decision.value}"
            )
        return attachment


def _with_status(attachment: Attachment, status: AttachmentStatus) -> Attachment:
    return Attachment(**{**attachment.__dict__, "status": status})


def _replace_attachment(attachments, replacement: Attachment):
    return [replacement if a.id == replacement.id else a for a in attachments]


def _status_patch(attachment_id: str, status: AttachmentStatus) -> ArrayItemPatch:
    return ArrayItemPatch(
        key_field="id",
        key=attachment_id,
        changes={"status": status.value},
        expect={"status": AttachmentStatus.PENDING.value},
    )
