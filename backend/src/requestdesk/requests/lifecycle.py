"""LifecycleEngine for document requests.

Pure decision layer: given the current record, the actor and an intended
action, validate legality and compute the complete new state, the field-level
changes to persist and the events to route. Nothing is written here; the
service applies the changes atomically.

Failure semantics: authorization is checked first, then transition legality.
Either failure raises before any change is computed.
"""

import uuid
from datetime import date, datetime
from typing import Callable, Optional

from ..auth.identity import IdentityFacts
from ..auth.roles import ASSIGNABLE_ROLES, UserRole, is_manager
from ..domain.errors import InvalidTransitionError, UnauthorizedError
from ..domain.ports.store import ArrayAppend
from ..domain.records import to_iso, utcnow
from ..domain.transition import Transition
from ..notifications.models import EventType, RequestEvent
from ..users.models import UserProfile
from .models import Attachment, AttachmentStatus, Comment, CommentKind, DocumentRequest, DocumentType
from .ids import UNKNOWN_ADMISSION_NO
from .status import RequestStatus, validate_transition

EXPECTED_DATE_FORMAT = "%d/%m/%Y"


def new_id() -> str:
    return uuid.uuid4().hex


class LifecycleEngine:
    """Validates and computes document request transitions.

    Args:
        clock: Returns the current UTC time (injectable for tests)
        id_factory: Returns fresh ids for comments and attachments
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_id,
    ):
        self.clock = clock
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(
        self,
        actor: IdentityFacts,
        request_id: str,
        document_type: DocumentType,
        details: str,
        initial_attachment: Optional[dict] = None,
    ) -> Transition[DocumentRequest]:
        """Open a new request on behalf of a student.

        ``initial_attachment`` holds name/mime_type/size/blob_ref of a file the
        student attached as reference material; it starts PENDING.
        """
        if actor.role != UserRole.STUDENT:
            raise UnauthorizedError("Only students can submit document requests")

        now = self.clock()
        attachments = []
        if initial_attachment:
            attachments.append(Attachment(
                id=self.id_factory(),
                name=initial_attachment["name"],
                mime_type=initial_attachment["mime_type"],
                size=initial_attachment["size"],
                blob_ref=initial_attachment["blob_ref"],
                uploaded_by=actor.display_name,
                uploaded_by_id=actor.id,
                status=AttachmentStatus.PENDING,
                created_at=now,
            ))

        record = DocumentRequest(
            id=request_id,
            status=RequestStatus.PENDING,
            student_id=actor.id,
            student_name=actor.display_name,
            student_admission_no=actor.admission_number or UNKNOWN_ADMISSION_NO,
            document_type=document_type,
            details=details,
            created_at=now,
            updated_at=now,
            attachments=attachments,
        )
        return Transition(
            record=record,
            changes=record.to_dict(),
            events=[RequestEvent(EventType.REQUEST_CREATED, record, actor)],
        )

    # ------------------------------------------------------------------
    # Assignment & status
    # ------------------------------------------------------------------

    def assign(
        self,
        actor: IdentityFacts,
        record: DocumentRequest,
        assignee: UserProfile,
    ) -> Transition[DocumentRequest]:
        """Assign the request; always resets status to ASSIGNED.

        Re-assignment from any status (even COMPLETED) lands on ASSIGNED and
        only the new assignee is notified.
        """
        if actor.role != UserRole.SUPER_ADMIN:
            raise UnauthorizedError("Only a super admin can assign requests")
        if assignee.role not in ASSIGNABLE_ROLES or not assignee.is_active:
            raise InvalidTransitionError(
                f"User {assignee.id} ({assignee.role.value}) cannot be assigned requests"
            )

        now = self.clock()
        updated = record.copy_with(
            assigned_to_id=assignee.id,
            assigned_to_name=assignee.full_name,
            status=RequestStatus.ASSIGNED,
            updated_at=now,
        )
        return Transition(
            record=updated,
            changes={
                "assigned_to_id": assignee.id,
                "assigned_to_name": assignee.full_name,
                "status": RequestStatus.ASSIGNED.value,
                "updated_at": to_iso(now),
            },
            events=[RequestEvent(EventType.REQUEST_ASSIGNED, updated, actor)],
        )

    def set_status(
        self,
        actor: IdentityFacts,
        record: DocumentRequest,
        new_status: RequestStatus,
    ) -> Transition[DocumentRequest]:
        """Manually change the status.

        COMPLETED can never be requested here. Setting the current status
        again is a no-op (no write, no notification).
        """
        if not is_manager(actor.role):
            raise UnauthorizedError("Only staff members can change request status")
        validate_transition(record.status, new_status)

        if record.status == new_status:
            return Transition(record=record)

        now = self.clock()
        updated = record.copy_with(status=new_status, updated_at=now)
        return Transition(
            record=updated,
            changes={"status": new_status.value, "updated_at": to_iso(now)},
            events=[RequestEvent(
                EventType.STATUS_CHANGED,
                updated,
                actor,
                {"previous_status": record.status.value},
            )],
        )

    def set_expected_date(
        self,
        actor: IdentityFacts,
        record: DocumentRequest,
        expected: date,
    ) -> Transition[DocumentRequest]:
        if actor.role != UserRole.SUPER_ADMIN:
            raise UnauthorizedError("Only a super admin can set the expected collection date")

        now = self.clock()
        updated = record.copy_with(expected_completion_date=expected, updated_at=now)
        return Transition(
            record=updated,
            changes={
                "expected_completion_date": expected.isoformat(),
                "updated_at": to_iso(now),
            },
            events=[RequestEvent(
                EventType.EXPECTED_DATE_SET,
                updated,
                actor,
                {"formatted_date": expected.strftime(EXPECTED_DATE_FORMAT)},
            )],
        )

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def add_comment(
        self,
        actor: IdentityFacts,
        record: DocumentRequest,
        content: str,
        kind: CommentKind = CommentKind.DIRECT,
    ) -> Transition[DocumentRequest]:
        """Append a comment.

        Students always write plain comments and only on their own requests;
        the requested kind is ignored for them. Staff roles write either an
        internal note or a direct message to the student.
        """
        content = (content or "").strip()
        if not content:
            raise InvalidTransitionError("Comment cannot be empty")

        if actor.role == UserRole.STUDENT:
            if record.student_id != actor.id:
                raise UnauthorizedError("Students can only comment on their own requests")
            kind = CommentKind.PLAIN
            event_type = EventType.STUDENT_COMMENT_ADDED
        elif kind == CommentKind.INTERNAL:
            event_type = EventType.INTERNAL_COMMENT_ADDED
        elif kind in (CommentKind.DIRECT, CommentKind.PLAIN):
            kind = CommentKind.DIRECT
            event_type = EventType.DIRECT_MESSAGE_ADDED
        else:
            raise InvalidTransitionError(f"Unsupported comment kind: {kind}")

        now = self.clock()
        comment = Comment(
            id=self.id_factory(),
            author_id=actor.id,
            author_name=actor.display_name,
            content=content,
            created_at=now,
            is_internal=kind == CommentKind.INTERNAL,
            is_direct_message=kind == CommentKind.DIRECT,
        )
        updated = record.copy_with(comments=[*record.comments, comment], updated_at=now)
        return Transition(
            record=updated,
            changes={
                "comments": ArrayAppend((comment.to_dict(),)),
                "updated_at": to_iso(now),
            },
            events=[RequestEvent(event_type, updated, actor, {"comment_id": comment.id})],
        )
