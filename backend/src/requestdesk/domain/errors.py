"""Error taxonomy for the request lifecycle engine.

Authorization and transition errors are raised synchronously and prevent any
mutation. Batch partial failures carry the ids that were (and were not)
applied so callers can retry only the remainder. Notification delivery errors
are never propagated to the caller of the triggering operation.
"""

from typing import Iterable, List, Optional


class RequestDeskError(Exception):
    """Base class for all domain errors."""

    code = "request_desk_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthorizedError(RequestDeskError):
    """The actor's role forbids the operation."""

    code = "unauthorized"


class InvalidTransitionError(RequestDeskError):
    """The target state is unreachable from the current state via this operation."""

    code = "invalid_transition"


class ConcurrentModificationError(InvalidTransitionError):
    """The record kept changing underneath the operation until retries ran out."""

    code = "concurrent_modification"


class NotFoundError(RequestDeskError):
    """A record, attachment, notification or user id could not be resolved."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class AlreadyExistsError(RequestDeskError):
    """A user profile with the same id or email is already registered."""

    code = "already_exists"


class PreconditionFailedError(RequestDeskError):
    """A store-side precondition on a field transform did not hold at write time."""

    code = "precondition_failed"


class PartialBatchFailureError(RequestDeskError):
    """A chunked bulk operation committed some but not all chunks."""

    code = "partial_batch_failure"

    def __init__(
        self,
        applied_ids: Iterable[str],
        remaining_ids: Iterable[str],
        cause: Optional[BaseException] = None,
    ):
        self.applied_ids: List[str] = list(applied_ids)
        self.remaining_ids: List[str] = list(remaining_ids)
        self.cause = cause
        super().__init__(
            f"Bulk operation stopped after {len(self.applied_ids)} record(s); "
            f"{len(self.remaining_ids)} record(s) were not processed"
            + (f": {cause}" if cause else "")
        )


class NotificationDeliveryError(RequestDeskError):
    """A notification could not be persisted. Logged, never raised to callers."""

    code = "notification_delivery_failed"
