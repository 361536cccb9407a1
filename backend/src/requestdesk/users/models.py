"""User directory entry."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..auth.identity import IdentityFacts
from ..auth.roles import UserRole


USERS_COLLECTION = "users"


@dataclass(frozen=True)
class UserProfile:
    """Profile of a registered user as seen by the engine (credentials excluded)."""
    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    admission_number: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_identity(self) -> IdentityFacts:
        return IdentityFacts(
            id=self.id,
            role=self.role,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            admission_number=self.admission_number,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role.value,
            "admission_number": self.admission_number,
            "designation": self.designation,
            "phone": self.phone,
            "gender": self.gender,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=data["id"],
            email=data.get("email", ""),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            role=UserRole(data["role"]),
            admission_number=data.get("admission_number"),
            designation=data.get("designation"),
            phone=data.get("phone"),
            gender=data.get("gender"),
            is_active=bool(data.get("is_active", True)),
        )
