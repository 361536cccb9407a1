"""Password reset request aggregate.

A simplified sibling of DocumentRequest: no comments, no attachments. The
requester is usually not signed in, so identity fields are captured on the
record itself.
"""

from dataclasses import dataclass, replace
from typing import Any, ClassVar, Dict, Optional

from ..auth.roles import UserRole
from ..domain.records import ManageableRecord, RecordKind, from_iso, to_iso
from .status import PasswordResetStatus


PASSWORD_RESETS_COLLECTION = "password_resets"


@dataclass(kw_only=True)
class PasswordResetRequest(ManageableRecord):
    kind: ClassVar[RecordKind] = RecordKind.PASSWORD_RESET
    collection: ClassVar[str] = PASSWORD_RESETS_COLLECTION

    status: PasswordResetStatus = PasswordResetStatus.PENDING
    role: UserRole
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    admission_number: Optional[str] = None  # Students only
    gender: Optional[str] = None            # Students only
    designation: Optional[str] = None       # Staff only

    @property
    def requester_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def copy_with(self, **changes: Any) -> "PasswordResetRequest":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "role": self.role.value,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "admission_number": self.admission_number,
            "gender": self.gender,
            "designation": self.designation,
            "assigned_to_id": self.assigned_to_id,
            "assigned_to_name": self.assigned_to_name,
            "created_at": to_iso(self.created_at),
            "hidden_from_users": list(self.hidden_from_users),
            "dashboard_hidden": self.dashboard_hidden,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PasswordResetRequest":
        return cls(
            id=data["id"],
            status=PasswordResetStatus(data.get("status", PasswordResetStatus.PENDING.value)),
            role=UserRole(data["role"]),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            email=data.get("email", ""),
            phone=data.get("phone"),
            admission_number=data.get("admission_number"),
            gender=data.get("gender"),
            designation=data.get("designation"),
            assigned_to_id=data.get("assigned_to_id"),
            assigned_to_name=data.get("assigned_to_name"),
            created_at=from_iso(data["created_at"]),
            hidden_from_users=list(data.get("hidden_from_users") or []),
            dashboard_hidden=bool(data.get("dashboard_hidden", False)),
        )
