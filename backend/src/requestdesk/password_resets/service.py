"""PasswordResetService - password reset request operations."""

import logging
from typing import Optional

from ..auth.identity import IdentityFacts
from ..auth.roles import UserRole
from ..domain.errors import NotFoundError
from ..domain.record_service import RecordService
from .lifecycle import PasswordResetLifecycle
from .models import PasswordResetRequest
from .status import PasswordResetStatus

logger = logging.getLogger(__name__)


class PasswordResetService(RecordService[PasswordResetRequest]):

    record_type = PasswordResetRequest
    entity_name = "Password reset request"

    def __init__(self, *args, lifecycle: Optional[PasswordResetLifecycle] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.lifecycle = lifecycle or PasswordResetLifecycle()

    def create_request(
        self,
        role: UserRole,
        first_name: str,
        last_name: str,
        email: str,
        phone: Optional[str] = None,
        admission_number: Optional[str] = None,
        gender: Optional[str] = None,
        designation: Optional[str] = None,
    ) -> PasswordResetRequest:
        """Public submission from the sign-in page."""
        transition = self.lifecycle.create(
            role=role,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            admission_number=admission_number,
            gender=gender,
            designation=designation,
        )
        record = self.insert("create", transition)
        logger.info(
            f"Password reset request {record.id} submitted",
            extra={"record_id": record.id},
        )
        return record

    def assign(self, actor: IdentityFacts, request_id: str, assignee_id: str) -> PasswordResetRequest:
        assignee = self.directory.get_user(assignee_id)
        if assignee is None:
            raise NotFoundError("User", assignee_id)
        return self.apply(
            "assign", request_id,
            lambda record: self.lifecycle.assign(actor, record, assignee),
        )

    def set_status(
        self,
        actor: IdentityFacts,
        request_id: str,
        status: PasswordResetStatus,
    ) -> PasswordResetRequest:
        return self.apply(
            "set_status", request_id,
            lambda record: self.lifecycle.set_status(actor, record, status),
        )
