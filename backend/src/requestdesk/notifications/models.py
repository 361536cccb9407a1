"""Notification domain models: lifecycle events, routing targets, inbox entries."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..auth.identity import IdentityFacts
from ..domain.records import ManageableRecord, from_iso, to_iso


NOTIFICATIONS_COLLECTION = "notifications"


class EventType(str, Enum):
    """State changes that may fan out notifications."""
    REQUEST_CREATED = "REQUEST_CREATED"
    REQUEST_ASSIGNED = "REQUEST_ASSIGNED"
    STATUS_CHANGED = "STATUS_CHANGED"
    EXPECTED_DATE_SET = "EXPECTED_DATE_SET"
    ATTACHMENT_SUBMITTED = "ATTACHMENT_SUBMITTED"  # Staff upload awaiting review
    ATTACHMENT_APPROVED = "ATTACHMENT_APPROVED"
    ATTACHMENT_REJECTED = "ATTACHMENT_REJECTED"
    INTERNAL_COMMENT_ADDED = "INTERNAL_COMMENT_ADDED"
    STUDENT_COMMENT_ADDED = "STUDENT_COMMENT_ADDED"
    DIRECT_MESSAGE_ADDED = "DIRECT_MESSAGE_ADDED"
    PASSWORD_RESET_CREATED = "PASSWORD_RESET_CREATED"
    PASSWORD_RESET_ASSIGNED = "PASSWORD_RESET_ASSIGNED"


@dataclass(frozen=True)
class RequestEvent:
    """Something that happened to a record.

    ``record`` is the state after the change. ``actor`` is None for public
    submissions (password reset requests from signed-out users).
    """
    type: EventType
    record: ManageableRecord
    actor: Optional[IdentityFacts]
    detail: Dict[str, Any] = field(default_factory=dict)

    @property
    def actor_id(self) -> Optional[str]:
        return self.actor.id if self.actor else None


@dataclass(frozen=True)
class NotificationTarget:
    """One (recipient, message, link) tuple produced by the router."""
    recipient_id: str
    message: str
    link: Optional[str] = None


@dataclass(frozen=True)
class Notification:
    id: str
    user_id: str
    message: str
    created_at: datetime
    link: Optional[str] = None
    is_read: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "message": self.message,
            "link": self.link,
            "is_read": self.is_read,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            message=data.get("message", ""),
            link=data.get("link"),
            is_read=bool(data.get("is_read", False)),
            created_at=from_iso(data["created_at"]),
        )
