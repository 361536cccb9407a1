"""Shared 'manageable record' capability of document and password reset requests.

Both record kinds carry a status, an optional assignee, per-user hide flags and
a dashboard flag. They form a small tagged union distinguished by RecordKind.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, List, Optional


class RecordKind(str, Enum):
    DOCUMENT_REQUEST = "DOCUMENT_REQUEST"
    PASSWORD_RESET = "PASSWORD_RESET"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def from_iso(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(kw_only=True)
class ManageableRecord:
    """Fields and behaviour common to every record kind."""
    kind: ClassVar[RecordKind]
    collection: ClassVar[str]

    id: str
    created_at: datetime
    assigned_to_id: Optional[str] = None
    assigned_to_name: Optional[str] = None
    hidden_from_users: List[str] = field(default_factory=list)
    dashboard_hidden: bool = False

    def is_hidden_for(self, user_id: str) -> bool:
        return user_id in self.hidden_from_users
