"""Result of an engine decision."""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, TypeVar

from ..notifications.models import RequestEvent

R = TypeVar("R")


@dataclass
class Transition(Generic[R]):
    """The full outcome of one engine operation, computed before persistence.

    Attributes:
        record: Record state after the operation
        changes: Field-level changes to write (plain values or FieldTransforms);
            only the fields the operation owns
        events: Lifecycle events for the NotificationRouter
    """
    record: R
    changes: Dict[str, Any] = field(default_factory=dict)
    events: List[RequestEvent] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.changes
