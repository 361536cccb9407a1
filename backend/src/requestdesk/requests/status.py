"""RequestStatus state machine for document requests.

State Flow:
    PENDING → ASSIGNED → IN_PROGRESS → ACTION_NEEDED ↔ IN_PROGRESS/ASSIGNED
                                     → COMPLETED

COMPLETED is terminal and system-only: it is reached only as a side effect of
an approved attachment, never through a manual status change. Assignment
always resets the status to ASSIGNED.
"""

from enum import Enum
from typing import Dict, List

from ..domain.errors import InvalidTransitionError


class RequestStatus(str, Enum):
    """Document request status enumeration."""
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    ACTION_NEEDED = "ACTION_NEEDED"  # Rejected document needs staff attention
    COMPLETED = "COMPLETED"          # System-only terminal state

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS: Dict[RequestStatus, str] = {
    RequestStatus.PENDING: "Pending",
    RequestStatus.ASSIGNED: "Assigned",
    RequestStatus.IN_PROGRESS: "In-Progress",
    RequestStatus.ACTION_NEEDED: "Action Needed",
    RequestStatus.COMPLETED: "Completed",
}

# Statuses a staff member may pick by hand
MANUAL_STATUSES: List[RequestStatus] = [
    RequestStatus.PENDING,
    RequestStatus.ASSIGNED,
    RequestStatus.IN_PROGRESS,
    RequestStatus.ACTION_NEEDED,
]

# Manual status edits. Staff may move freely between the non-terminal
# statuses; nothing leaves COMPLETED and nothing manual enters it.
ALLOWED_MANUAL_TRANSITIONS: Dict[RequestStatus, List[RequestStatus]] = {
    RequestStatus.PENDING: MANUAL_STATUSES,
    RequestStatus.ASSIGNED: MANUAL_STATUSES,
    RequestStatus.IN_PROGRESS: MANUAL_STATUSES,
    RequestStatus.ACTION_NEEDED: MANUAL_STATUSES,
    RequestStatus.COMPLETED: [],  # Terminal state
}


def can_transition(current_status: RequestStatus, new_status: RequestStatus) -> bool:
    """Check if a manual status change is allowed.

    Example:
        >>> can_transition(RequestStatus.PENDING, RequestStatus.IN_PROGRESS)
        True
        >>> can_transition(RequestStatus.IN_PROGRESS, RequestStatus.COMPLETED)
        False
    """
    return new_status in ALLOWED_MANUAL_TRANSITIONS.get(current_status, [])


def validate_transition(current_status: RequestStatus, new_status: RequestStatus) -> None:
    """Validate that a manual status change is allowed.

    Raises:
        InvalidTransitionError: If the change is not allowed
    """
    if new_status == RequestStatus.COMPLETED:
        raise InvalidTransitionError(
            "Completed is set automatically when a document is approved "
            "and cannot be selected manually"
        )
    if not can_transition(current_status, new_status):
        raise InvalidTransitionError(
            f"Invalid transition: {current_status.value} -> {new_status.value}. "
            f"Allowed transitions from {current_status.value}: "
            f"{[s.value for s in ALLOWED_MANUAL_TRANSITIONS.get(current_status, [])]}"
        )


def get_allowed_transitions(status: RequestStatus) -> List[RequestStatus]:
    return ALLOWED_MANUAL_TRANSITIONS.get(status, [])
