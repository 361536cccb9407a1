"""RequestService - document request operations over the record store.

Wires the LifecycleEngine and AttachmentWorkflow to the store: each operation
re-reads the record, lets the engine decide, writes only the fields the
operation owns and hands the resulting events to the Notifier.
"""

import logging
from datetime import date
from typing import Optional

from ..auth.identity import IdentityFacts
from ..auth.roles import UserRole
from ..domain.errors import NotFoundError, UnauthorizedError
from ..domain.record_service import RecordService
from ..domain.records import utcnow
from ..users.models import UserProfile
from .attachments import AttachmentWorkflow
from .ids import UNKNOWN_ADMISSION_NO, generate_request_id
from .lifecycle import LifecycleEngine
from .models import REQUESTS_COLLECTION, CommentKind, DocumentRequest, DocumentType
from .status import RequestStatus

logger = logging.getLogger(__name__)


class RequestService(RecordService[DocumentRequest]):
    """Document request use cases.

    Args:
        engine: LifecycleEngine (status, assignment, comments)
        workflow: AttachmentWorkflow (uploads, approve, reject)
        (remaining arguments as RecordService)
    """

    record_type = DocumentRequest
    entity_name = "Request"

    def __init__(
        self,
        *args,
        engine: Optional[LifecycleEngine] = None,
        workflow: Optional[AttachmentWorkflow] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.engine = engine or LifecycleEngine()
        self.workflow = workflow or AttachmentWorkflow()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def next_request_id(self, actor: IdentityFacts) -> str:
        """Id the actor's next request will get.

        Sequence numbers count prior requests of the admission number. If a
        hard delete freed a lower number the next free id is used instead of
        overwriting an existing record.
        """
        if actor.role != UserRole.STUDENT:
            raise UnauthorizedError("Only students can submit document requests")

        admission_no = (actor.admission_number or "").strip() or UNKNOWN_ADMISSION_NO
        prior = len(self.store.list(
            REQUESTS_COLLECTION,
            lambda d: d.get("student_admission_no") == admission_no,
        ))
        now = self.engine.clock()
        request_id = generate_request_id(admission_no, prior, now)
        while self.store.get(REQUESTS_COLLECTION, request_id) is not None:
            prior += 1
            request_id = generate_request_id(admission_no, prior, now)
        return request_id

    def create_request(
        self,
        actor: IdentityFacts,
        document_type: DocumentType,
        details: str,
        request_id: Optional[str] = None,
        initial_attachment: Optional[dict] = None,
    ) -> DocumentRequest:
        """Submit a new request.

        Args:
            actor: The student
            document_type: Requested document
            details: Free text from the student
            request_id: Id reserved with next_request_id() (e.g. to store an
                attachment under it first); computed when omitted
            initial_attachment: name/mime_type/size/blob_ref of a reference file
        """
        request_id = request_id or self.next_request_id(actor)
        transition = self.engine.create(actor, request_id, document_type, details, initial_attachment)
        record = self.insert("create", transition)
        logger.info(
            f"Request {record.id} created by {actor.id}",
            extra={"record_id": record.id, "user_id": actor.id},
        )
        return record

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _assignee(self, assignee_id: str) -> UserProfile:
        assignee = self.directory.get_user(assignee_id)
        if assignee is None:
            raise NotFoundError("User", assignee_id)
        return assignee

    def assign(self, actor: IdentityFacts, request_id: str, assignee_id: str) -> DocumentRequest:
        assignee = self._assignee(assignee_id)
        return self.apply(
            "assign", request_id,
            lambda record: self.engine.assign(actor, record, assignee),
        )

    def set_status(self, actor: IdentityFacts, request_id: str, status: RequestStatus) -> DocumentRequest:
        return self.apply(
            "set_status", request_id,
            lambda record: self.engine.set_status(actor, record, status),
        )

    def set_expected_date(self, actor: IdentityFacts, request_id: str, expected: date) -> DocumentRequest:
        return self.apply(
            "set_expected_date", request_id,
            lambda record: self.engine.set_expected_date(actor, record, expected),
        )

    def add_comment(
        self,
        actor: IdentityFacts,
        request_id: str,
        content: str,
        kind: CommentKind = CommentKind.DIRECT,
    ) -> DocumentRequest:
        return self.apply(
            "add_comment", request_id,
            lambda record: self.engine.add_comment(actor, record, content, kind),
        )

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def upload_attachment(
        self,
        actor: IdentityFacts,
        request_id: str,
        name: str,
        mime_type: str,
        size: int,
        blob_ref: str,
    ) -> DocumentRequest:
        return self.apply(
            "upload_attachment", request_id,
            lambda record: self.workflow.upload(actor, record, name, mime_type, size, blob_ref),
        )

    def approve_attachment(self, actor: IdentityFacts, request_id: str, attachment_id: str) -> DocumentRequest:
        return self.apply(
            "approve_attachment", request_id,
            lambda record: self.workflow.approve(actor, record, attachment_id),
        )

    def reject_attachment(
        self,
        actor: IdentityFacts,
        request_id: str,
        attachment_id: str,
        reason: str,
    ) -> DocumentRequest:
        return self.apply(
            "reject_attachment", request_id,
            lambda record: self.workflow.reject(actor, record, attachment_id, reason),
        )
