"""LifecycleEngine for password reset requests."""

import uuid
from datetime import datetime
from typing import Callable, Optional

from ..auth.identity import IdentityFacts
from ..auth.roles import ASSIGNABLE_ROLES, ASSIGNEE_SCOPED_ROLES, UserRole, is_manager
from ..domain.errors import InvalidTransitionError, UnauthorizedError
from ..domain.records import utcnow
from ..domain.transition import Transition
from ..notifications.models import EventType, RequestEvent
from ..users.models import UserProfile
from .models import PasswordResetRequest
from .status import PasswordResetStatus, validate_transition


def new_reset_id() -> str:
    return uuid.uuid4().hex


class PasswordResetLifecycle:
    """Validates and computes password reset transitions.

    Creation is public: the requester has forgotten their password and is not
    signed in, so the created event carries no actor.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_reset_id,
    ):
        self.clock = clock
        self.id_factory = id_factory

    def create(
        self,
        role: UserRole,
        first_name: str,
        last_name: str,
        email: str,
        phone: Optional[str] = None,
        admission_number: Optional[str] = None,
        gender: Optional[str] = None,
        designation: Optional[str] = None,
    ) -> Transition[PasswordResetRequest]:
        """Open a password reset request.

        Students identify themselves with admission number and gender, staff
        roles with their designation; the other fields are dropped.
        """
        first_name = (first_name or "").strip()
        last_name = (last_name or "").strip()
        email = (email or "").strip().lower()
        if not first_name or not last_name or not email:
            raise InvalidTransitionError("First name, last name and email are required")
        if role == UserRole.STUDENT and not admission_number:
            raise InvalidTransitionError("Students must provide their admission number")

        is_student = role == UserRole.STUDENT
        record = PasswordResetRequest(
            id=self.id_factory(),
            status=PasswordResetStatus.PENDING,
            role=role,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            admission_number=admission_number if is_student else None,
            gender=gender if is_student else None,
            designation=None if is_student else designation,
            created_at=self.clock(),
        )
        return Transition(
            record=record,
            changes=record.to_dict(),
            events=[RequestEvent(EventType.PASSWORD_RESET_CREATED, record, None)],
        )

    def assign(
        self,
        actor: IdentityFacts,
        record: PasswordResetRequest,
        assignee: UserProfile,
    ) -> Transition[PasswordResetRequest]:
        if actor.role != UserRole.SUPER_ADMIN:
            raise UnauthorizedError("Only a super admin can assign password reset requests")
        if assignee.role not in ASSIGNABLE_ROLES or not assignee.is_active:
            raise InvalidTransitionError(
                f"User {assignee.id} ({assignee.role.value}) cannot be assigned requests"
            )

        updated = record.copy_with(
            assigned_to_id=assignee.id,
            assigned_to_name=assignee.full_name,
            status=PasswordResetStatus.ASSIGNED,
        )
        return Transition(
            record=updated,
            changes={
                "assigned_to_id": assignee.id,
                "assigned_to_name": assignee.full_name,
                "status": PasswordResetStatus.ASSIGNED.value,
            },
            events=[RequestEvent(EventType.PASSWORD_RESET_ASSIGNED, updated, actor)],
        )

    def set_status(
        self,
        actor: IdentityFacts,
        record: PasswordResetRequest,
        new_status: PasswordResetStatus,
    ) -> Transition[PasswordResetRequest]:
        """Move the request to any status. Status changes notify nobody.

        Admins and staff may only handle resets assigned to them.
        """
        if not is_manager(actor.role):
            raise UnauthorizedError("Only staff members can change password reset status")
        if actor.role in ASSIGNEE_SCOPED_ROLES and record.assigned_to_id != actor.id:
            raise UnauthorizedError(f"Password reset request {record.id} is not assigned to you")
        validate_transition(record.status, new_status)

        if record.status == new_status:
            return Transition(record=record)

        updated = record.copy_with(status=new_status)
        return Transition(record=updated, changes={"status": new_status.value})
