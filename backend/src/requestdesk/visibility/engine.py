"""VisibilityEngine - what a viewer may see of a record.

Every function here is a pure function of (snapshot, viewer) so it can be
re-applied to each pushed snapshot. Nothing is stored about what a viewer
has already seen.

Read access:
- Record scope (lists, dashboard, soft delete):
    SUPER_ADMIN → all records
    ADMIN/STAFF → records assigned to them
    STUDENT     → their own document requests; password resets carrying
                  their email
- Detail view: managers may open any document request (status changes do not
  require an assignee); students only their own.
- Attachments: managers see all; others see their own uploads and APPROVED ones.
- Comments: students never see internal notes; ADMIN/STAFF never see direct
  messages written by someone else; SUPER_ADMIN sees everything.
"""

from typing import Iterable, List, Sequence, TypeVar

from ..auth.identity import IdentityFacts
from ..auth.roles import ASSIGNEE_SCOPED_ROLES, UserRole, is_manager
from ..domain.errors import UnauthorizedError
from ..domain.records import ManageableRecord
from ..password_resets.models import PasswordResetRequest
from ..requests.models import Attachment, AttachmentStatus, Comment, DocumentRequest

R = TypeVar("R", bound=ManageableRecord)


def owns_attachment(viewer: IdentityFacts, attachment: Attachment) -> bool:
    """True when ``viewer`` uploaded the attachment.

    Records written before uploader ids were stored fall back to matching the
    viewer's first name inside the uploader display name.
    """
    if attachment.uploaded_by_id:
        return attachment.uploaded_by_id == viewer.id
    return bool(viewer.first_name) and viewer.first_name in (attachment.uploaded_by or "")


def can_see_attachment(viewer: IdentityFacts, attachment: Attachment) -> bool:
    if is_manager(viewer.role):
        return True
    if owns_attachment(viewer, attachment):
        return True
    return attachment.status == AttachmentStatus.APPROVED


def can_see_comment(viewer: IdentityFacts, comment: Comment) -> bool:
    if viewer.role == UserRole.SUPER_ADMIN:
        return True
    if viewer.role == UserRole.STUDENT:
        return not comment.is_internal
    # ADMIN / STAFF
    if comment.is_direct_message:
        return comment.author_id == viewer.id
    return True


def visible_attachments(viewer: IdentityFacts, attachments: Iterable[Attachment]) -> List[Attachment]:
    return [a for a in attachments if can_see_attachment(viewer, a)]


def visible_comments(viewer: IdentityFacts, comments: Iterable[Comment]) -> List[Comment]:
    return [c for c in comments if can_see_comment(viewer, c)]


def in_scope(viewer: IdentityFacts, record: ManageableRecord) -> bool:
    """Role-scoped membership used for lists, dashboard and soft delete."""
    if viewer.role == UserRole.SUPER_ADMIN:
        return True
    if viewer.role in ASSIGNEE_SCOPED_ROLES:
        return bool(record.assigned_to_id) and record.assigned_to_id == viewer.id
    if isinstance(record, DocumentRequest):
        return record.student_id == viewer.id
    if isinstance(record, PasswordResetRequest):
        return bool(viewer.email) and record.email.lower() == viewer.email.lower()
    return False


def can_view(viewer: IdentityFacts, record: ManageableRecord) -> bool:
    """Whether the detail view of a single record may be opened."""
    if isinstance(record, DocumentRequest) and is_manager(viewer.role):
        return True
    return in_scope(viewer, record)


def is_listed(viewer: IdentityFacts, record: ManageableRecord) -> bool:
    return in_scope(viewer, record) and not record.is_hidden_for(viewer.id)


def is_on_dashboard(viewer: IdentityFacts, record: ManageableRecord) -> bool:
    return is_listed(viewer, record) and not record.dashboard_hidden


def view_record(viewer: IdentityFacts, record: R) -> R:
    """Return the record as ``viewer`` is allowed to see it.

    Raises:
        UnauthorizedError: If the viewer may not open this record
    """
    if not can_view(viewer, record):
        raise UnauthorizedError(f"You do not have access to request {record.id}")
    if isinstance(record, DocumentRequest):
        return record.copy_with(
            comments=visible_comments(viewer, record.comments),
            attachments=visible_attachments(viewer, record.attachments),
        )
    return record


def listed_records(viewer: IdentityFacts, records: Sequence[R]) -> List[R]:
    """Filtered views of every record on the viewer's lists."""
    return [view_record(viewer, r) for r in records if is_listed(viewer, r)]


def dashboard_records(viewer: IdentityFacts, records: Sequence[R]) -> List[R]:
    return [view_record(viewer, r) for r in records if is_on_dashboard(viewer, r)]
