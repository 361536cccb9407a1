"""PasswordResetStatus state machine.

State Flow:
    PENDING → ASSIGNED → IN_PROGRESS → COMPLETED

All transitions are manual and there is no system-only state; staff may move a
request to any status, including back out of COMPLETED.
"""

from enum import Enum
from typing import Dict, List

from ..domain.errors import InvalidTransitionError


class PasswordResetStatus(str, Enum):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


ALLOWED_TRANSITIONS: Dict[PasswordResetStatus, List[PasswordResetStatus]] = {
    status: list(PasswordResetStatus) for status in PasswordResetStatus
}


def validate_transition(current_status: PasswordResetStatus, new_status: PasswordResetStatus) -> None:
    """Raises InvalidTransitionError if the change is not allowed."""
    if new_status not in ALLOWED_TRANSITIONS.get(current_status, []):
        raise InvalidTransitionError(
            f"Invalid transition: {current_status.value} -> {new_status.value}"
        )
